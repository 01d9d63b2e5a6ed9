"""Define the interactive recommendation loop. """

import logging
from collections import OrderedDict
from enum import Enum

import numpy as np

from core.end_condition import NoLimitsEndCondition

logger = logging.getLogger(__name__)


class LoopState(Enum):
    UNINITIALIZED = 0
    READY = 1
    RUNNING = 2
    ENDED = 3


class RecommendationLoop(object):
    def __init__(self, dataset, learner, selection, update, metrics=None, end_condition=None,
                 rng_seed=0, cutoff=1):
        """
        Args:
            dataset: ground truth that rewards are drawn from
            learner: InteractiveRecommender
            selection: Selection, picks the target user and its candidates
            update: UpdateStrategy, maps a recommendation to the facts it discloses
            metrics: dict, key: metric name, value: CumulativeMetric
            end_condition: NumIterEndCondition, PercentagePositiveRatingsEndCondition or NoLimitsEndCondition
            rng_seed: int, seed of the generator used for user sampling
            cutoff: int, number of items recommended per iteration
        """
        if cutoff < 1:
            raise ValueError('cutoff must be at least 1')
        self.dataset = dataset
        self.learner = learner
        self.selection = selection
        self.update_strategy = update
        self.metrics = metrics if metrics is not None else {}
        self.end_condition = end_condition if end_condition is not None else NoLimitsEndCondition()
        self.rng_seed = rng_seed
        self.cutoff = cutoff
        self.state = LoopState.UNINITIALIZED
        self.num_iter = 0
        self.ended = False

    def init(self, warmup=None):
        """Prepare a fresh run, optionally starting from a warm-up.

        Args:
            warmup: Warmup or None
        """
        self.rng = np.random.default_rng(self.rng_seed)
        self.selection.init(self.dataset, self.rng, warmup)
        self.update_strategy.init(self.dataset)
        self.learner.init(self.update_strategy.warmup_facts(warmup))
        warmup_facts = warmup.full_training if warmup is not None else None
        for metric in self.metrics.values():
            metric.initialize(self.dataset, warmup_facts)
        self.end_condition.init()
        self.num_iter = 0
        self.ended = False
        self.state = LoopState.READY

    def _check_started(self):
        if self.state == LoopState.UNINITIALIZED:
            raise RuntimeError('The loop must be initialized before running')

    def has_ended(self):
        return self.ended or self.end_condition.has_ended()

    def next_recommendation(self):
        """Select a user and let the learner recommend.

        Return:
            (uidx, iidxs): target user and recommended items, or None if nobody has candidates
        """
        self._check_started()
        uidx = self.selection.select_target()
        if uidx is None:
            self._end()
            return None
        cand_items = self.selection.select_candidates(uidx)
        if len(cand_items) == 0:
            self._end()
            return None
        if self.cutoff == 1:
            iidxs = [self.learner.next(uidx, cand_items)]
        else:
            iidxs = self.learner.next_list(uidx, cand_items, self.cutoff)
        return uidx, iidxs

    def update(self, uidx, iidxs):
        """Disclose the outcome of recommending `iidxs` to `uidx` and close the iteration. """
        self._check_started()
        for iidx in iidxs:
            learner_facts, metric_facts = self.update_strategy.select_update(uidx, iidx, self.selection)
            for rating in learner_facts:
                self.learner.update(rating.uidx, rating.iidx, rating.value)
                self.selection.update(rating.uidx, rating.iidx, rating.value)
            for rating in metric_facts:
                for metric in self.metrics.values():
                    metric.update(rating.uidx, rating.iidx, rating.value)
                self.end_condition.update(rating.uidx, rating.iidx, rating.value)
        self.num_iter += 1
        self.state = LoopState.ENDED if self.has_ended() else LoopState.RUNNING

    def next_iteration(self):
        """Run one full iteration.

        Return:
            (iteration, uidx, iidxs), or None if the run has ended
        """
        if self.has_ended():
            self._end()
            return None
        rec = self.next_recommendation()
        if rec is None:
            return None
        uidx, iidxs = rec
        self.update(uidx, iidxs)
        return self.num_iter, uidx, iidxs

    def replay(self, uidx, iidxs):
        """Apply a recorded decision as if it had just been made.

        A recommendation is still drawn and discarded, so the random streams stay where an
        uninterrupted run would have them.
        """
        rec = self.next_recommendation()
        if rec is not None and rec[0] != uidx:
            logger.warning('Replayed user %d differs from selected user %d', uidx, rec[0])
        self.ended = False
        self.update(uidx, iidxs)

    def _end(self):
        self.ended = True
        self.state = LoopState.ENDED

    def metric_values(self):
        return OrderedDict((name, self.metrics[name].compute()) for name in sorted(self.metrics))
