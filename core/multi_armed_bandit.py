"""Define abstract context-free multi-armed bandit. """

import numpy as np

from core.contextual_bandit import InvalidIndexError, rank_candidates


def identity(arm, value, num_times):
    """Default value function: the score of an arm is the bandit's own estimate. """
    return value


class MultiArmedBandit(object):
    def __init__(self, num_arms, rng_seed=0):
        """
        Args:
            num_arms: int, number of arms (items)
            rng_seed: int, seed of the tie-breaking generator
        """
        self.num_arms = num_arms
        self.rng_seed = rng_seed
        self.rng = np.random.default_rng(rng_seed)

    def _check_arm(self, arm):
        if not 0 <= arm < self.num_arms:
            raise InvalidIndexError('Arm {} out of range [0, {})'.format(arm, self.num_arms))

    @staticmethod
    def _check_reward(reward):
        if not 0.0 <= reward <= 1.0:
            raise ValueError('Reward {} is not in [0, 1]; binarise graded ratings first'.format(reward))

    def reset(self):
        """Restore every arm to its prior and reseed the generator. """
        self.rng = np.random.default_rng(self.rng_seed)

    def scores(self, available, value_fn):
        """Score each available arm.

        Args:
            available: list of arm indexes
            value_fn: callable (arm, value, num_times) -> float
        Return:
            scores: list of float, aligned with `available`
        """
        raise NotImplementedError

    def next(self, available, value_fn=identity):
        """Select an arm.

        Return:
            arm: int, or None if there is no available arm
        """
        available = list(available)
        if len(available) == 0:
            return None
        if len(available) == 1:
            return available[0]
        best = rank_candidates(self.scores(available, value_fn), 1, self.rng)
        return available[best[0]]

    def next_list(self, available, k, value_fn=identity):
        """Select up to k arms, in descending score order. """
        available = list(available)
        if len(available) == 0:
            return []
        positions = rank_candidates(self.scores(available, value_fn), k, self.rng)
        return [available[j] for j in positions]

    def _next_list_greedy(self, available, k, value_fn):
        """Apply the single-arm selector k times, removing each chosen arm. """
        available = list(available)
        chosen = []
        while len(chosen) < k and len(available) > 0:
            arm = self.next(available, value_fn)
            chosen.append(arm)
            available.remove(arm)
        return chosen

    def update(self, arm, reward):
        raise NotImplementedError

    def get_stats(self, arm):
        """
        Return:
            (hits, misses) accumulated since the last reset, or None if arm is out of range.
        """
        raise NotImplementedError
