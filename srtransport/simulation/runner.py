"""
Batch Runner for Parameter Sweep Simulations

This module runs the emulator over a grid of channel loss and corruption
probabilities, several seeds per grid point, and tabulates the results.
"""

import os
import time
from typing import Optional, Callable, List, Dict
from dataclasses import dataclass
from concurrent.futures import ProcessPoolExecutor, as_completed
import multiprocessing

import pandas as pd
from tqdm import tqdm

from ..config import (
    LOSS_PROBS, CORRUPT_PROBS, RUNS_PER_CONFIGURATION,
    RNG_SEED_BASE, RESULTS_CSV, SWEEP_NUM_MSGS, DEFAULT_INTERARRIVAL_TIME
)
from ..utils.logger import SimulationLogger, LogLevel
from .emulator import Emulator, EmulatorConfig


@dataclass
class RunConfig:
    """Configuration for a single simulation run."""
    loss_prob: float
    corrupt_prob: float
    run_id: int
    seed: int
    num_msgs: int
    interarrival_time: float = DEFAULT_INTERARRIVAL_TIME
    burst: bool = False


def run_single_simulation(run_config: RunConfig) -> Dict:
    """
    Run a single simulation with given configuration.

    This function is designed to be called in a separate process.

    Args:
        run_config: Configuration for this run

    Returns:
        Dictionary with results
    """
    row = {
        'loss_prob': run_config.loss_prob,
        'corrupt_prob': run_config.corrupt_prob,
        'run_id': run_config.run_id,
        'seed': run_config.seed,
    }
    try:
        config = EmulatorConfig(
            num_msgs=run_config.num_msgs,
            interarrival_time=run_config.interarrival_time,
            loss_prob=run_config.loss_prob,
            corrupt_prob=run_config.corrupt_prob,
            burst=run_config.burst,
            seed=run_config.seed
        )
        results = Emulator(config).run()
    except ValueError as e:
        row['error'] = str(e)
        return row

    metrics = results['metrics']
    row.update({
        'throughput': metrics['throughput'],
        'efficiency': metrics['efficiency'],
        'messages_accepted': metrics['messages_accepted'],
        'messages_delivered': metrics['messages_delivered'],
        'packets_received': metrics['packets_received'],
        'new_acks': metrics['new_acks'],
        'packets_resent': metrics['packets_resent'],
        'window_full': metrics['window_full'],
        'packets_lost': metrics['packets_lost'],
        'packets_corrupted': metrics['packets_corrupted'],
        'retransmission_rate': metrics['retransmission_rate'],
        'delay_mean': metrics['delay']['mean'],
        'total_time': results['simulation_time'],
        'data_valid': results['verification']['valid'],
        'complete': results['complete'],
        'error': None
    })
    return row


class BatchRunner:
    """
    Batch Runner for parameter sweep simulations.

    Executes all (loss, corrupt) combinations with multiple runs each.

    Attributes:
        loss_probs: Loss probabilities to test
        corrupt_probs: Corruption probabilities to test
        runs_per_config: Number of runs per grid point
        num_msgs: Messages per run
    """

    def __init__(
        self,
        loss_probs: Optional[List[float]] = None,
        corrupt_probs: Optional[List[float]] = None,
        runs_per_config: int = RUNS_PER_CONFIGURATION,
        num_msgs: int = SWEEP_NUM_MSGS,
        burst: bool = False,
        output_file: str = RESULTS_CSV,
        on_progress: Optional[Callable[[int, int, dict], None]] = None,
        logger: Optional[SimulationLogger] = None,
        show_progress: bool = True
    ):
        """
        Initialize batch runner.

        Args:
            loss_probs: Loss probabilities (default from config)
            corrupt_probs: Corruption probabilities (default from config)
            runs_per_config: Number of runs per grid point
            num_msgs: Messages per run
            burst: Use the Gilbert-Elliott channel for loss
            output_file: Path to output CSV file
            on_progress: Callback for progress updates
            logger: Run logger
            show_progress: Show a progress bar on stderr
        """
        self.loss_probs = loss_probs if loss_probs is not None else LOSS_PROBS
        self.corrupt_probs = corrupt_probs if corrupt_probs is not None else CORRUPT_PROBS
        self.runs_per_config = runs_per_config
        self.num_msgs = num_msgs
        self.burst = burst
        self.output_file = output_file
        self.on_progress = on_progress
        self.logger = logger or SimulationLogger(name="Runner", level=LogLevel.INFO)
        self.show_progress = show_progress

        # Results storage
        self.results: List[Dict] = []

        # Progress tracking
        self.total_runs = (len(self.loss_probs) *
                           len(self.corrupt_probs) *
                           self.runs_per_config)
        self.completed_runs = 0
        self.start_time = 0.0

    def _generate_run_configs(self) -> List[RunConfig]:
        """Generate all run configurations."""
        configs = []

        for loss_prob in self.loss_probs:
            for corrupt_prob in self.corrupt_probs:
                for run_id in range(self.runs_per_config):
                    # Same seeds across grid points so runs are comparable
                    seed = RNG_SEED_BASE + run_id * 10000

                    configs.append(RunConfig(
                        loss_prob=loss_prob,
                        corrupt_prob=corrupt_prob,
                        run_id=run_id,
                        seed=seed,
                        num_msgs=self.num_msgs,
                        burst=self.burst
                    ))

        return configs

    def _record(self, result: Dict):
        """Store one result and report progress."""
        self.results.append(result)
        self.completed_runs += 1

        if result.get('error'):
            self.logger.error(
                f"Run loss={result['loss_prob']} corrupt={result['corrupt_prob']} "
                f"seed={result['seed']} failed: {result['error']}", "SWEEP"
            )

        if self.on_progress:
            self.on_progress(self.completed_runs, self.total_runs, result)

    def run_sequential(self) -> List[Dict]:
        """
        Run all simulations sequentially.

        Returns:
            List of result dictionaries
        """
        configs = self._generate_run_configs()
        self.results = []
        self.completed_runs = 0
        self.start_time = time.time()

        self.logger.info(f"Running {self.total_runs} simulations sequentially...", "SWEEP")

        for config in tqdm(configs, desc="Simulations", disable=not self.show_progress):
            self._record(run_single_simulation(config))

        total_time = time.time() - self.start_time
        self.logger.info(f"Completed {self.total_runs} simulations in {total_time:.1f}s", "SWEEP")

        return self.results

    def run_parallel(self, max_workers: Optional[int] = None) -> List[Dict]:
        """
        Run simulations in parallel using multiprocessing.

        Args:
            max_workers: Number of parallel workers (default: CPU count)

        Returns:
            List of result dictionaries
        """
        if max_workers is None:
            max_workers = multiprocessing.cpu_count()

        configs = self._generate_run_configs()
        self.results = []
        self.completed_runs = 0
        self.start_time = time.time()

        self.logger.info(
            f"Running {self.total_runs} simulations with {max_workers} workers...", "SWEEP"
        )

        with ProcessPoolExecutor(max_workers=max_workers) as executor:
            futures = {
                executor.submit(run_single_simulation, config): config
                for config in configs
            }
            iterator = tqdm(as_completed(futures), total=len(futures),
                            desc="Simulations", disable=not self.show_progress)
            for future in iterator:
                self._record(future.result())

        total_time = time.time() - self.start_time
        self.logger.info(f"Completed {self.total_runs} simulations in {total_time:.1f}s", "SWEEP")

        return self.results

    def to_dataframe(self) -> pd.DataFrame:
        """Get results as a DataFrame sorted by grid point and run."""
        df = pd.DataFrame(self.results)
        if df.empty:
            return df
        return df.sort_values(['loss_prob', 'corrupt_prob', 'run_id']).reset_index(drop=True)

    def save_results(self, filepath: Optional[str] = None) -> Optional[str]:
        """
        Save results to CSV file.

        Args:
            filepath: Output file path (default: self.output_file)

        Returns:
            Path written, or None when there was nothing to save
        """
        filepath = filepath or self.output_file

        if not self.results:
            self.logger.warning("No results to save!", "SWEEP")
            return None

        output_dir = os.path.dirname(filepath)
        if output_dir:
            os.makedirs(output_dir, exist_ok=True)

        self.to_dataframe().to_csv(filepath, index=False)
        self.logger.info(f"Results saved to: {filepath}", "SWEEP")
        return filepath

    def summarize(self) -> pd.DataFrame:
        """
        Aggregate results by (loss, corrupt) pair.

        Returns:
            DataFrame with mean/std throughput and mean protocol counters
        """
        df = self.to_dataframe()
        if df.empty:
            return df
        if 'error' in df.columns:
            df = df[df['error'].isna()]
        if df.empty:
            return df

        return df.groupby(['loss_prob', 'corrupt_prob']).agg(
            throughput_mean=('throughput', 'mean'),
            throughput_std=('throughput', 'std'),
            packets_resent_mean=('packets_resent', 'mean'),
            window_full_mean=('window_full', 'mean'),
            delay_mean=('delay_mean', 'mean'),
            complete_share=('complete', 'mean'),
            runs=('run_id', 'count')
        ).reset_index()
