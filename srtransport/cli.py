"""
Selective Repeat Transport Emulator - Command Line Interface

Provides options for:
- Single emulation runs
- Channel parameter sweep (loss x corruption)
- Visualization generation

Usage:
    python -m srtransport --single -n 20 -l 0.2 -c 0.2 -d 10 -v 1
    python -m srtransport --sweep --runs 5
    python -m srtransport --visualize --csv results.csv
"""

import argparse
import os
import time

from .config import (
    DEFAULT_NUM_MSGS, DEFAULT_INTERARRIVAL_TIME, RNG_SEED_BASE,
    RUNS_PER_CONFIGURATION, SWEEP_NUM_MSGS, RESULTS_CSV, PLOTS_DIR
)


def run_single_simulation(args):
    """Run a single emulation with specified parameters."""
    from .simulation.emulator import Emulator, EmulatorConfig

    config = EmulatorConfig(
        num_msgs=args.num_msgs,
        interarrival_time=args.interarrival,
        loss_prob=args.loss,
        corrupt_prob=args.corrupt,
        burst=args.burst,
        seed=args.seed,
        trace=args.trace
    )

    print("-----  Selective Repeat Network Simulator Version 1.1 -------- ")
    print(f"\nConfiguration:")
    print(f"  Messages to simulate: {config.num_msgs}")
    print(f"  Packet loss probability: {config.loss_prob}")
    print(f"  Packet corruption probability: {config.corrupt_prob}")
    print(f"  Average time between messages: {config.interarrival_time}")
    print(f"  Burst loss channel: {config.burst}")
    print(f"  Window size: {config.window_size}, sequence space: {config.seqspace}")
    print(f"  Trace level: {config.trace}")
    print(f"  Seed: {config.seed}")

    emulator = Emulator(config)
    start_time = time.time()
    results = emulator.run()
    elapsed = time.time() - start_time

    metrics = results['metrics']
    print("\n" + "=" * 60)
    print("RESULTS")
    print("=" * 60)
    print(f"\nSimulator terminated at time {results['simulation_time']:.3f} "
          f"after receiving {metrics['messages_delivered']} msgs at layer5")
    print(f"  Complete: {results['complete']}")
    print(f"  Data Valid: {results['verification']['valid']}")
    print(f"  Real Time: {elapsed:.2f} s")

    print(f"\nChannel:")
    print(f"  Packets sent by A: {metrics['packets_to_layer3_a']}")
    print(f"  Packets sent by B: {metrics['packets_to_layer3_b']}")
    print(f"  Packets lost: {metrics['packets_lost']}")
    print(f"  Packets corrupted: {metrics['packets_corrupted']}")

    print(f"\nProtocol:")
    print(f"  Packets received (new, at B): {metrics['packets_received']}")
    print(f"  ACKs received at A: {metrics['new_acks']}")
    print(f"  Packets resent: {metrics['packets_resent']}")
    print(f"  Messages refused (window full): {metrics['window_full']}")

    print(f"\nPerformance:")
    print(f"  Messages delivered: {metrics['messages_delivered']}")
    print(f"  Throughput: {metrics['throughput']:.4f} msgs/time unit")
    if metrics['delay']['samples'] > 0:
        print(f"  Delivery delay mean: {metrics['delay']['mean']:.3f}, "
              f"max: {metrics['delay']['max']:.3f}")

    return results


def run_parameter_sweep(args):
    """Run channel parameter sweep."""
    from .simulation.runner import BatchRunner

    print("=" * 60)
    print("PARAMETER SWEEP")
    print("=" * 60)

    if args.quick:
        loss_probs = [0.0, 0.2]
        corrupt_probs = [0.0, 0.2]
        runs = 2
        num_msgs = 20
    else:
        loss_probs = None
        corrupt_probs = None
        runs = args.runs
        num_msgs = args.num_msgs if args.num_msgs != DEFAULT_NUM_MSGS else SWEEP_NUM_MSGS

    output_file = args.output or RESULTS_CSV
    runner = BatchRunner(
        loss_probs=loss_probs,
        corrupt_probs=corrupt_probs,
        runs_per_config=runs,
        num_msgs=num_msgs,
        burst=args.burst,
        output_file=output_file
    )

    print(f"\nConfiguration:")
    print(f"  Loss probabilities: {runner.loss_probs}")
    print(f"  Corruption probabilities: {runner.corrupt_probs}")
    print(f"  Runs per config: {runs}")
    print(f"  Total simulations: {runner.total_runs}")
    print(f"  Messages per run: {num_msgs}")
    print(f"  Output: {output_file}")

    print("\nStarting parameter sweep...")

    if args.parallel:
        results = runner.run_parallel(max_workers=args.workers)
    else:
        results = runner.run_sequential()

    runner.save_results()

    summary = runner.summarize()
    if not summary.empty:
        print("\n" + "=" * 60)
        print("SUMMARY")
        print("=" * 60)
        print(summary.to_string(index=False, float_format=lambda v: f"{v:.4f}"))

    return results


def generate_visualizations(args):
    """Generate heatmaps from a results CSV."""
    print("=" * 60)
    print("GENERATING VISUALIZATIONS")
    print("=" * 60)

    csv_file = args.csv or RESULTS_CSV

    if not os.path.exists(csv_file):
        print(f"Error: Results file not found: {csv_file}")
        print("Run a parameter sweep first: python -m srtransport --sweep")
        return

    from .visualization.heatmap import ThroughputHeatmap
    heatmap = ThroughputHeatmap(csv_file=csv_file)
    print(f"Loaded {len(heatmap.results)} results from {csv_file}")

    plots_dir = args.output or PLOTS_DIR
    os.makedirs(plots_dir, exist_ok=True)

    files = {}
    for metric in ('throughput', 'packets_resent', 'delay_mean'):
        print(f"Generating {metric} heatmap...")
        files[metric] = heatmap.plot(
            metric=metric,
            output_file=os.path.join(plots_dir, f'{metric}_heatmap.png')
        )

    print("\n" + "=" * 60)
    print("VISUALIZATIONS GENERATED")
    print("=" * 60)
    for metric, path in files.items():
        print(f"  {metric}: {path}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="srtransport",
        description="Selective Repeat Reliable Transport Emulator",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  Single emulation with 20% loss and corruption:
    python -m srtransport --single -n 50 -l 0.2 -c 0.2 -v 1

  Quick parameter sweep (for testing):
    python -m srtransport --sweep --quick

  Parallel parameter sweep:
    python -m srtransport --sweep --parallel --workers 4

  Generate visualizations:
    python -m srtransport --visualize
        """
    )

    # Mode selection
    mode = parser.add_mutually_exclusive_group()
    mode.add_argument('--single', action='store_true',
                      help='Run single emulation (default)')
    mode.add_argument('--sweep', action='store_true',
                      help='Run loss/corruption parameter sweep')
    mode.add_argument('--visualize', action='store_true',
                      help='Generate visualizations')

    # Single emulation options
    parser.add_argument('--num-msgs', '-n', type=int, default=DEFAULT_NUM_MSGS,
                        help=f'Number of messages to simulate (default: {DEFAULT_NUM_MSGS})')
    parser.add_argument('--loss', '-l', type=float, default=0.0,
                        help='Packet loss probability, the average loss with --burst (default: 0.0)')
    parser.add_argument('--corrupt', '-c', type=float, default=0.0,
                        help='Packet corruption probability (default: 0.0)')
    parser.add_argument('--interarrival', '-d', type=float, default=DEFAULT_INTERARRIVAL_TIME,
                        help=f'Average time between messages (default: {DEFAULT_INTERARRIVAL_TIME})')
    parser.add_argument('--seed', '-s', type=int, default=RNG_SEED_BASE,
                        help=f'Random seed (default: {RNG_SEED_BASE})')
    parser.add_argument('--trace', '-v', type=int, default=0,
                        help='Trace level 0-3 (default: 0)')
    parser.add_argument('--burst', action='store_true',
                        help='Use Gilbert-Elliott burst loss channel')

    # Parameter sweep options
    parser.add_argument('--runs', '-r', type=int,
                        default=RUNS_PER_CONFIGURATION,
                        help=f'Runs per configuration (default: {RUNS_PER_CONFIGURATION})')
    parser.add_argument('--parallel', action='store_true',
                        help='Run simulations in parallel')
    parser.add_argument('--workers', type=int, default=None,
                        help='Number of parallel workers')
    parser.add_argument('--quick', action='store_true',
                        help='Quick test with reduced parameters')

    # Output options
    parser.add_argument('--output', '-o', type=str,
                        help='Results CSV for --sweep, plot directory for --visualize')
    parser.add_argument('--csv', type=str,
                        help='CSV file for visualization')

    return parser


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        if args.sweep:
            run_parameter_sweep(args)
        elif args.visualize:
            generate_visualizations(args)
        else:
            run_single_simulation(args)
    except ValueError as e:
        parser.error(str(e))


if __name__ == "__main__":
    main()
