"""Define abstract interactive recommender and the loop that runs it. """

import datetime
import heapq
import logging
import math
import os

import numpy as np
from tqdm import tqdm

from utils.data_util import IterationWriter, read_previous_iterations

logger = logging.getLogger(__name__)


class InvalidIndexError(ValueError):
    """A user, item or arm index outside the range fixed at construction. """


def rank_candidates(scores, k, rng):
    """Positions of the k best scores, best first.

    Keeps a bounded heap of size k; ties are broken by uniform random keys drawn from `rng`
    and nan scores rank as -inf.

    Args:
        scores: sequence of float
        k: int
        rng: numpy.random.Generator
    Return:
        positions: list of at most k int
    """
    n = len(scores)
    if n == 0 or k <= 0:
        return []
    keys = rng.random(n)
    entries = ((-math.inf if math.isnan(s) else s, keys[j], j) for j, s in enumerate(scores))
    return [j for _, _, j in heapq.nlargest(k, entries)]


class InteractiveRecommender(object):
    def __init__(self, num_users, num_items, ignore_not_rated=True, not_rated=0.0, rng_seed=0,
                 name='InteractiveRecommender'):
        """Args:
                num_users: int, size of the user index space
                num_items: int, size of the item index space
                ignore_not_rated: bool, skip updates for pairs without ground truth
                not_rated: float, value used for pairs without ground truth when they are not skipped
                rng_seed: int, seed of the generator used for sampling and tie-breaking
        """
        self.name = name
        self.num_users = num_users
        self.num_items = num_items
        self.ignore_not_rated = ignore_not_rated
        self.not_rated = not_rated
        self.rng_seed = rng_seed
        self.rng = np.random.default_rng(rng_seed)

    def init(self, warmup_ratings=None):
        """Reset the learner to its initial state (do this for each run), then learn the warm-up.

        Args:
            warmup_ratings: list of Rating, possibly with nan values
        """
        self.rng = np.random.default_rng(self.rng_seed)
        self.reset()
        if warmup_ratings:
            ratings = []
            for uidx, iidx, value in warmup_ratings:
                self._check_indexes(uidx, iidx)
                value = self._resolve_value(value)
                if value is not None:
                    ratings.append((uidx, iidx, value))
            self.train(ratings)

    def reset(self):
        pass

    def train(self, ratings):
        """Learn from a batch of warm-up (uidx, iidx, value) with resolved values. """
        for uidx, iidx, value in ratings:
            self.update_method(uidx, iidx, value)

    def _check_indexes(self, uidx, iidx):
        if not 0 <= uidx < self.num_users:
            raise InvalidIndexError('User index {} out of range [0, {})'.format(uidx, self.num_users))
        if not 0 <= iidx < self.num_items:
            raise InvalidIndexError('Item index {} out of range [0, {})'.format(iidx, self.num_items))

    def _resolve_value(self, value):
        if value is None or math.isnan(value):
            return None if self.ignore_not_rated else self.not_rated
        return value

    def next(self, uidx, cand_items):
        """Recommend a single item.

        Return:
            iidx: int, or None if `cand_items` is empty
        """
        if len(cand_items) == 0:
            return None
        if len(cand_items) == 1:
            return cand_items[0]
        return self.item_rec(uidx, list(cand_items), 1)[0]

    def next_list(self, uidx, cand_items, k):
        """Recommend up to k items, best first. """
        if len(cand_items) == 0:
            return []
        return self.item_rec(uidx, list(cand_items), min(k, len(cand_items)))

    def item_rec(self, uidx, cand_items, m=1):
        """
        Args:
            uidx: int, a user index
            cand_items: a non-empty list of int item indexes
            m: int, number of items to rec

        Return:
            items: a list of `m` int
        """
        raise NotImplementedError

    def update(self, uidx, iidx, value):
        """Disclose the reward of (uidx, iidx) to the learner.

        Args:
            value: float, nan if the pair has no ground truth
        """
        self._check_indexes(uidx, iidx)
        value = self._resolve_value(value)
        if value is not None:
            self.update_method(uidx, iidx, value)

    def update_method(self, uidx, iidx, value):
        raise NotImplementedError


def run_recommendation_loop(args, loop, output_path, warmup=None):
    """Run one simulation and write one line per recommended item to `output_path`.

    When `args.resume` is set and the output exists, the decisions it records are replayed
    through the loop first, then the run continues where it stopped.

    Args:
        args: parameters loaded by config argparser
        loop: RecommendationLoop
        output_path: str
        warmup: Warmup or None
    Return:
        metrics: dict, key: metric name, value: final value
    """
    loop.init(warmup)
    metric_names = list(loop.metric_values().keys())

    previous = []
    if args.resume and os.path.exists(output_path):
        previous = read_previous_iterations(output_path, len(metric_names), loop.cutoff)
        logger.info('Resuming {} iterations from {}'.format(len(previous), output_path))

    t_start = datetime.datetime.now()
    with IterationWriter(output_path, metric_names, args.interval) as writer:
        for iteration, uidx, iidxs, elapsed in previous:
            loop.replay(uidx, iidxs)
            writer.write(iteration, uidx, iidxs, loop.metric_values(), elapsed)

        limit = args.num_iter if args.num_iter > 0 else None
        pbar = tqdm(total=limit, initial=loop.num_iter, desc=loop.learner.name)
        while not loop.has_ended():
            time1 = datetime.datetime.now()
            step = loop.next_iteration()
            if step is None:
                break
            time2 = datetime.datetime.now()
            iteration, uidx, iidxs = step
            elapsed = int((time2 - time1).total_seconds() * 1000)
            writer.write(iteration, uidx, iidxs, loop.metric_values(), elapsed)
            pbar.update(1)
        pbar.close()

    t_now = datetime.datetime.now()
    metrics = loop.metric_values()
    print('TIME: run {} with {} iterations used {}'.format(loop.learner.name, loop.num_iter, t_now - t_start))
    print('  metrics: {}'.format(metrics))
    return metrics
