"""
Batch Runner for Loss-Probability Sweeps

This module runs many stop-and-wait transmissions over a set of network
conditions (loss sweep or named presets) and collects one result row
per transmission.
"""

import os
import time
from typing import Optional, Callable, List, Dict, Tuple
from dataclasses import dataclass
from concurrent.futures import ProcessPoolExecutor, as_completed
import multiprocessing

import pandas as pd
from tqdm import tqdm

from config import (
    LOSS_PROBABILITIES, RUNS_PER_CONFIGURATION, RNG_SEED_BASE,
    DEFAULT_MIN_DELAY_MS, DEFAULT_MAX_DELAY_MS, NETWORK_PRESETS,
    SWEEP_MESSAGE, RESULTS_CSV
)
from simulation.transmission import transmit_message
from swarq.arq.errors import ProtocolError
from swarq.arq.timer import VirtualClock
from swarq.channel.network_path import NetworkConfig
from swarq.utils.metrics import Statistics
from swarq.utils.logger import ProtocolLogger, LogLevel


@dataclass
class RunConfig:
    """Configuration for a single transmission run."""
    label: str
    loss_probability: float
    min_delay_ms: int
    max_delay_ms: int
    run_id: int
    seed: int
    message: str = SWEEP_MESSAGE
    reack_duplicates: bool = True


def run_single_transmission(run_config: RunConfig) -> Tuple[Dict, Optional[Statistics]]:
    """
    Run one transmission on a simulated clock.

    This function is designed to be called in a separate process.

    Args:
        run_config: Configuration for this run

    Returns:
        Tuple of (result row, Statistics or None on error)
    """
    row = {
        'label': run_config.label,
        'loss_probability': run_config.loss_probability,
        'min_delay_ms': run_config.min_delay_ms,
        'max_delay_ms': run_config.max_delay_ms,
        'run_id': run_config.run_id,
        'seed': run_config.seed,
    }

    try:
        net = NetworkConfig(
            loss_probability=run_config.loss_probability,
            min_delay_ms=run_config.min_delay_ms,
            max_delay_ms=run_config.max_delay_ms,
            seed=run_config.seed
        )
        result = transmit_message(
            run_config.message,
            net,
            clock=VirtualClock(),
            logger=ProtocolLogger(name="Batch", level=LogLevel.CRITICAL),
            reack_duplicates=run_config.reack_duplicates
        )
    except ProtocolError as e:
        row.update({'success': False, 'error': str(e)})
        return row, None

    stats = result.statistics
    row.update({
        'success': result.success,
        'delivered': result.delivered is not None,
        **stats.to_csv_row(),
        'error': None
    })
    return row, stats


class ScenarioRunner:
    """
    Batch runner for stop-and-wait experiments.

    Runs `runs_per_config` transmissions for every loss probability (with
    the default delay range) and every named preset.

    Attributes:
        loss_probabilities: Loss probabilities to sweep
        presets: Names from NETWORK_PRESETS to include
        runs_per_config: Number of runs per configuration
        totals: Statistics merged across every run
    """

    def __init__(
        self,
        loss_probabilities: Optional[List[float]] = None,
        presets: Optional[List[str]] = None,
        runs_per_config: int = RUNS_PER_CONFIGURATION,
        delay_range: Tuple[int, int] = (DEFAULT_MIN_DELAY_MS, DEFAULT_MAX_DELAY_MS),
        message: str = SWEEP_MESSAGE,
        reack_duplicates: bool = True,
        output_file: str = RESULTS_CSV,
        on_progress: Optional[Callable[[int, int, dict], None]] = None
    ):
        """
        Initialize scenario runner.

        Args:
            loss_probabilities: Loss probabilities (default from config)
            presets: Preset names (default: none)
            runs_per_config: Number of runs per configuration
            delay_range: (min, max) delay in ms for the loss sweep
            message: Message sent in every run
            reack_duplicates: Receiver re-acknowledges duplicates
            output_file: Path to output CSV file
            on_progress: Callback for progress updates
        """
        if loss_probabilities is None:
            loss_probabilities = LOSS_PROBABILITIES
        self.loss_probabilities = list(loss_probabilities)
        self.presets = list(presets or [])
        for name in self.presets:
            if name not in NETWORK_PRESETS:
                raise KeyError(f"Unknown network preset: {name}")

        self.runs_per_config = runs_per_config
        self.delay_range = delay_range
        self.message = message
        self.reack_duplicates = reack_duplicates
        self.output_file = output_file
        self.on_progress = on_progress

        # Results storage
        self.results: List[Dict] = []
        self.totals = Statistics()

        # Progress tracking
        self.total_runs = (len(self.loss_probabilities) + len(self.presets)) * runs_per_config
        self.completed_runs = 0
        self.start_time = 0.0

    def _generate_run_configs(self) -> List[RunConfig]:
        """Generate all run configurations."""
        conditions = []
        min_delay, max_delay = self.delay_range
        for p in self.loss_probabilities:
            conditions.append((f"p={p:.2f}", p, min_delay, max_delay))
        for name in self.presets:
            loss, lo, hi = NETWORK_PRESETS[name]
            conditions.append((name, loss, lo, hi))

        configs = []
        for index, (label, loss, lo, hi) in enumerate(conditions):
            for run_id in range(self.runs_per_config):
                # Unique seed for each run
                seed = RNG_SEED_BASE + index * 100_000 + run_id
                configs.append(RunConfig(
                    label=label,
                    loss_probability=loss,
                    min_delay_ms=lo,
                    max_delay_ms=hi,
                    run_id=run_id,
                    seed=seed,
                    message=self.message,
                    reack_duplicates=self.reack_duplicates
                ))

        return configs

    def _collect(self, row: Dict, stats: Optional[Statistics]):
        self.results.append(row)
        if stats is not None:
            self.totals.merge(stats)
        self.completed_runs += 1
        if self.on_progress:
            self.on_progress(self.completed_runs, self.total_runs, row)

    def _reset(self):
        self.results = []
        self.totals = Statistics()
        self.completed_runs = 0
        self.start_time = time.time()

    def run_sequential(self, show_progress: bool = True) -> List[Dict]:
        """
        Run all transmissions sequentially.

        Returns:
            List of result dictionaries
        """
        configs = self._generate_run_configs()
        self._reset()

        for config in tqdm(configs, desc="Transmissions", disable=not show_progress):
            row, stats = run_single_transmission(config)
            self._collect(row, stats)

        return self.results

    def run_parallel(self, max_workers: Optional[int] = None,
                     show_progress: bool = True) -> List[Dict]:
        """
        Run transmissions in parallel using multiprocessing.

        Args:
            max_workers: Number of parallel workers (default: CPU count)

        Returns:
            List of result dictionaries, ordered by label and run_id
        """
        if max_workers is None:
            max_workers = multiprocessing.cpu_count()

        configs = self._generate_run_configs()
        self._reset()

        with ProcessPoolExecutor(max_workers=max_workers) as executor:
            futures = [executor.submit(run_single_transmission, config) for config in configs]
            for future in tqdm(as_completed(futures), total=len(futures),
                               desc="Transmissions", disable=not show_progress):
                row, stats = future.result()
                self._collect(row, stats)

        order = {c.label: i for i, c in enumerate(configs)}
        self.results.sort(key=lambda r: (order[r['label']], r['run_id']))
        return self.results

    def to_dataframe(self) -> pd.DataFrame:
        """Results as a DataFrame (one row per transmission)."""
        return pd.DataFrame(self.results)

    def save_results(self, filepath: Optional[str] = None) -> str:
        """
        Save results to CSV file.

        Args:
            filepath: Output file path (default: self.output_file)

        Returns:
            Path written

        Raises:
            ValueError: If there are no results yet
        """
        filepath = filepath or self.output_file
        if not self.results:
            raise ValueError("No results to save")

        directory = os.path.dirname(filepath)
        if directory:
            os.makedirs(directory, exist_ok=True)

        self.to_dataframe().to_csv(filepath, index=False)
        return filepath

    def get_aggregated_results(self) -> pd.DataFrame:
        """
        Aggregate runs per condition.

        Returns:
            DataFrame indexed by label with loss probability, delivery rate,
            mean/max retransmissions and mean duration
        """
        df = self.to_dataframe()
        if df.empty:
            return df

        df = df[df['error'].isna()]
        grouped = df.groupby('label', sort=False)
        return pd.DataFrame({
            'loss_probability': grouped['loss_probability'].first(),
            'runs': grouped.size(),
            'delivery_rate': grouped['success'].mean(),
            'retx_mean': grouped['retransmissions'].mean(),
            'retx_max': grouped['retransmissions'].max(),
            'frames_lost_mean': grouped['frames_lost'].mean(),
            'duration_ms_mean': grouped['duration_ms'].mean(),
        })


if __name__ == "__main__":
    print("=" * 60)
    print("SCENARIO RUNNER TEST")
    print("=" * 60)

    runner = ScenarioRunner(
        loss_probabilities=[0.0, 0.2, 0.4],
        presets=['ideal', 'harsh'],
        runs_per_config=20
    )

    print(f"\nTotal runs: {runner.total_runs}")
    runner.run_sequential()
    path = runner.save_results()
    print(f"Results saved to: {path}")

    print("\nAggregated results:")
    print(runner.get_aggregated_results().to_string())
    print(f"\nTotals: {runner.totals}")
