"""
Sweep Result Heatmap Visualization

This module generates 2D heatmaps of a run metric as a function of channel
loss and corruption probability.
"""

import os
from typing import Dict, List, Optional, Tuple, Union

import numpy as np
import pandas as pd
import matplotlib
matplotlib.use('Agg')
import matplotlib.pyplot as plt
import seaborn as sns

from ..config import PLOTS_DIR

METRIC_LABELS = {
    'throughput': 'Throughput (msgs / time unit)',
    'packets_resent': 'Packets resent',
    'window_full': 'Window-full drops',
    'delay_mean': 'Mean delivery delay (time units)',
    'efficiency': 'Efficiency (delivered / sent)',
}


class ThroughputHeatmap:
    """
    Generates heatmaps of metric(loss_prob, corrupt_prob).

    Attributes:
        results: Per-run results, one row per simulation
        loss_probs: Sorted loss probabilities present in the results
        corrupt_probs: Sorted corruption probabilities present in the results
    """

    def __init__(
        self,
        results: Optional[Union[pd.DataFrame, List[Dict]]] = None,
        csv_file: Optional[str] = None
    ):
        """
        Initialize heatmap generator.

        Args:
            results: DataFrame or list of result dictionaries
            csv_file: Path to CSV file with results
        """
        if results is not None:
            self.results = pd.DataFrame(results)
        elif csv_file:
            self.results = pd.read_csv(csv_file)
        else:
            self.results = pd.DataFrame()

        if 'error' in self.results.columns:
            self.results = self.results[self.results['error'].isna()]

        if self.results.empty:
            self.loss_probs: List[float] = []
            self.corrupt_probs: List[float] = []
        else:
            self.loss_probs = sorted(self.results['loss_prob'].unique())
            self.corrupt_probs = sorted(self.results['corrupt_prob'].unique())

    def create_matrix(self, metric: str = 'throughput') -> Tuple[np.ndarray, float, Tuple[int, int]]:
        """
        Create matrix of mean metric values.

        Rows follow loss_probs, columns follow corrupt_probs.

        Returns:
            Tuple of (matrix, max_value, max_indices)
        """
        if metric not in self.results.columns:
            raise ValueError(f"Unknown metric: {metric}")

        pivot = self.results.pivot_table(
            index='loss_prob',
            columns='corrupt_prob',
            values=metric,
            aggfunc='mean'
        ).reindex(index=self.loss_probs, columns=self.corrupt_probs)

        matrix = pivot.to_numpy(dtype=float)
        max_idx = np.unravel_index(np.nanargmax(matrix), matrix.shape)
        return matrix, float(matrix[max_idx]), (int(max_idx[0]), int(max_idx[1]))

    def plot(
        self,
        metric: str = 'throughput',
        output_file: Optional[str] = None,
        title: Optional[str] = None,
        figsize: Tuple[int, int] = (10, 7),
        cmap: str = "viridis",
        show_values: bool = True
    ) -> str:
        """
        Generate and save heatmap.

        Args:
            metric: Result column to plot
            output_file: Output file path (auto-generated if None)
            title: Plot title
            figsize: Figure size (width, height)
            cmap: Colormap name
            show_values: Show values in cells

        Returns:
            Path to saved figure
        """
        if self.results.empty:
            raise ValueError("No results to plot")

        matrix, _, _ = self.create_matrix(metric)

        # Higher loss at the top
        matrix_display = np.flipud(matrix)
        loss_display = list(reversed(self.loss_probs))

        fig, ax = plt.subplots(figsize=figsize)
        sns.heatmap(
            matrix_display,
            annot=show_values,
            fmt='.3f',
            cmap=cmap,
            xticklabels=self.corrupt_probs,
            yticklabels=loss_display,
            ax=ax,
            cbar_kws={'label': METRIC_LABELS.get(metric, metric)}
        )

        ax.set_xlabel('Corruption probability', fontsize=12)
        ax.set_ylabel('Loss probability', fontsize=12)
        ax.set_title(title or f"{METRIC_LABELS.get(metric, metric)} vs channel impairment",
                     fontsize=14, fontweight='bold')

        plt.tight_layout()

        if output_file is None:
            os.makedirs(PLOTS_DIR, exist_ok=True)
            output_file = os.path.join(PLOTS_DIR, f'{metric}_heatmap.png')
        else:
            output_dir = os.path.dirname(output_file)
            if output_dir:
                os.makedirs(output_dir, exist_ok=True)

        fig.savefig(output_file, dpi=150, bbox_inches='tight')
        plt.close(fig)

        return output_file
