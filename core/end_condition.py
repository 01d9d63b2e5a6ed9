"""Define when a simulation stops before running out of candidates. """

import math


class NoLimitsEndCondition(object):
    """Never ends: the run stops once no user has candidates left. """

    def init(self):
        pass

    def update(self, uidx, iidx, value):
        pass

    def has_ended(self):
        return False


class NumIterEndCondition(object):
    def __init__(self, num_iter):
        """Stop after `num_iter` disclosed facts. """
        if num_iter < 0:
            raise ValueError('num_iter must be non-negative')
        self.num_iter = num_iter
        self.init()

    def init(self):
        self.actual = 0

    def update(self, uidx, iidx, value):
        self.actual += 1

    def has_ended(self):
        return self.actual >= self.num_iter


class PercentagePositiveRatingsEndCondition(object):
    def __init__(self, num_rel, percentage, threshold):
        """Stop once a fraction of the relevant ratings has been discovered.

        Args:
            num_rel: int, total number of relevant ratings available
            percentage: float in [0, 1]
            threshold: float, values >= threshold are relevant
        """
        if not 0.0 <= percentage <= 1.0:
            raise ValueError('percentage must be in [0, 1]')
        self.num_rel = num_rel
        self.percentage = percentage
        self.threshold = threshold
        self.init()

    def init(self):
        self.target = int(math.ceil(self.num_rel * self.percentage))
        self.actual = 0

    def update(self, uidx, iidx, value):
        if not math.isnan(value) and value >= self.threshold:
            self.actual += 1

    def has_ended(self):
        return self.actual >= self.target
