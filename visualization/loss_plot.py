"""
Loss Sweep Visualization

This module plots delivery rate and retransmissions against the
network loss probability.
"""

import os
from typing import Dict, List, Optional, Tuple, Union

import numpy as np
import pandas as pd
import matplotlib
matplotlib.use('Agg')
import matplotlib.pyplot as plt
import seaborn as sns

from config import MAX_RETRIES, PLOTS_DIR


class LossSweepPlot:
    """
    Plots of stop-and-wait behaviour over a loss-probability sweep.

    Accepts the per-transmission rows produced by ScenarioRunner.
    """

    def __init__(
        self,
        results: Union[pd.DataFrame, List[Dict], None] = None,
        csv_file: Optional[str] = None
    ):
        """
        Initialize plot generator.

        Args:
            results: DataFrame or list of result dictionaries
            csv_file: Path to CSV file with results
        """
        if results is not None:
            self.df = pd.DataFrame(results)
        elif csv_file:
            self.df = pd.read_csv(csv_file)
        else:
            self.df = pd.DataFrame()

        if not self.df.empty and 'error' in self.df:
            self.df = self.df[self.df['error'].isna()]

    def summarize(self) -> pd.DataFrame:
        """Mean outcome per loss probability."""
        if self.df.empty:
            raise ValueError("No results to plot")
        grouped = self.df.groupby('loss_probability')
        return pd.DataFrame({
            'delivery_rate': grouped['success'].mean(),
            'retx_mean': grouped['retransmissions'].mean(),
            'retx_std': grouped['retransmissions'].std().fillna(0),
        }).reset_index()

    @staticmethod
    def theoretical_delivery_rate(loss_probability: np.ndarray) -> np.ndarray:
        """
        Delivery probability with MAX_RETRIES retransmissions.

        Each attempt survives both directions with (1 - p)^2.
        """
        round_trip = (1 - loss_probability) ** 2
        return 1 - (1 - round_trip) ** (MAX_RETRIES + 1)

    def plot(
        self,
        output_file: Optional[str] = None,
        title: str = "Stop-and-Wait Delivery vs Loss Probability",
        figsize: Tuple[int, int] = (12, 5)
    ) -> str:
        """
        Generate and save the two-panel figure.

        Args:
            output_file: Output file path (auto-generated if None)
            title: Figure title
            figsize: Figure size (width, height)

        Returns:
            Path to saved figure
        """
        summary = self.summarize()
        sns.set_theme(style="whitegrid")

        fig, (ax_rate, ax_retx) = plt.subplots(1, 2, figsize=figsize)

        # Delivery rate with the analytical curve
        sns.lineplot(data=summary, x='loss_probability', y='delivery_rate',
                     marker='o', ax=ax_rate, label='Simulated')
        p = np.linspace(0, summary['loss_probability'].max(), 100)
        ax_rate.plot(p, self.theoretical_delivery_rate(p), '--', color='gray',
                     label=f'Analytical ({MAX_RETRIES} retries)')
        ax_rate.set_xlabel('Loss Probability', fontsize=12)
        ax_rate.set_ylabel('Delivery Rate', fontsize=12)
        ax_rate.set_ylim(0, 1.05)
        ax_rate.legend()

        # Retransmissions
        ax_retx.errorbar(summary['loss_probability'], summary['retx_mean'],
                         yerr=summary['retx_std'], fmt='o-', capsize=4)
        ax_retx.axhline(MAX_RETRIES, color='red', linestyle=':', label='Retry limit')
        ax_retx.set_xlabel('Loss Probability', fontsize=12)
        ax_retx.set_ylabel('Retransmissions per Message', fontsize=12)
        ax_retx.legend()

        fig.suptitle(title, fontsize=14, fontweight='bold')
        plt.tight_layout()

        if output_file is None:
            os.makedirs(PLOTS_DIR, exist_ok=True)
            output_file = os.path.join(PLOTS_DIR, 'loss_sweep.png')

        plt.savefig(output_file, dpi=150, bbox_inches='tight')
        plt.close(fig)

        return output_file
