"""Define cumulative metrics, updated with every fact the loop discloses. """

import math

import numpy as np


class CumulativeMetric(object):
    def initialize(self, dataset, warmup_facts=None):
        raise NotImplementedError

    def update(self, uidx, iidx, value):
        raise NotImplementedError

    def compute(self):
        raise NotImplementedError

    def reset(self):
        raise NotImplementedError


class CumulativeRecall(CumulativeMetric):
    def __init__(self, threshold=0.5, num_rel=None):
        """Fraction of the relevant ratings not seen in the warm-up that have been discovered.

        Args:
            threshold: float, values >= threshold are relevant
            num_rel: int, number of relevant ratings; taken from the dataset when None
        """
        self.threshold = threshold
        self.fixed_num_rel = num_rel
        self.num_rel = 0 if num_rel is None else num_rel
        self.to_remove = 0
        self.current = 0

    def _relevant(self, value):
        return not math.isnan(value) and value >= self.threshold

    def initialize(self, dataset, warmup_facts=None):
        self.num_rel = dataset.num_rel if self.fixed_num_rel is None else self.fixed_num_rel
        self.to_remove = sum(1 for r in warmup_facts if self._relevant(r.value)) if warmup_facts else 0
        self.current = 0

    def update(self, uidx, iidx, value):
        if self._relevant(value):
            self.current += 1

    def compute(self):
        total = self.num_rel - self.to_remove
        if total <= 0:
            return 0.0
        return self.current / total

    def reset(self):
        self.current = 0


class CumulativeGini(CumulativeMetric):
    """1 - Gini index of how often each item has been recommended: 1 means a perfectly even spread. """

    def __init__(self):
        self.freqs = np.zeros(0)

    def initialize(self, dataset, warmup_facts=None):
        self.freqs = np.zeros(dataset.num_items())

    def update(self, uidx, iidx, value):
        self.freqs[iidx] += 1

    def compute(self):
        n = len(self.freqs)
        total = self.freqs.sum()
        if n <= 1 or total == 0:
            return 1.0
        sorted_freqs = np.sort(self.freqs)
        ranks = np.arange(1, n + 1)
        gini = np.sum((2 * ranks - n - 1) * sorted_freqs) / ((n - 1) * total)
        return 1.0 - gini

    def reset(self):
        self.freqs[:] = 0


class ClickThroughRate(CumulativeMetric):
    """Fraction of disclosed facts that were relevant. """

    def __init__(self, threshold=0.5):
        self.threshold = threshold
        self.hits = 0
        self.total = 0

    def initialize(self, dataset, warmup_facts=None):
        self.reset()

    def update(self, uidx, iidx, value):
        self.total += 1
        if not math.isnan(value) and value >= self.threshold:
            self.hits += 1

    def compute(self):
        return self.hits / self.total if self.total > 0 else 0.0

    def reset(self):
        self.hits = 0
        self.total = 0


METRICS = {
    'recall': CumulativeRecall,
    'gini': CumulativeGini,
    'ctr': ClickThroughRate,
}
