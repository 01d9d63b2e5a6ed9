"""Define maximum-likelihood samplers: arms are drawn in proportion to their estimated
popularity or average rating instead of being ranked by score. """

import numpy as np

from core.multi_armed_bandit import MultiArmedBandit, identity


class MLEBandit(MultiArmedBandit):
    def __init__(self, num_arms, alpha=1.0, beta=0.0, rng_seed=0):
        """
        Args:
            alpha: float or array of `num_arms` floats, prior hits
            beta: float or array of `num_arms` floats, prior misses
        """
        super(MLEBandit, self).__init__(num_arms, rng_seed)
        self.init_hits = np.broadcast_to(np.asarray(alpha, dtype=float), (num_arms,)).copy()
        self.init_misses = np.broadcast_to(np.asarray(beta, dtype=float), (num_arms,)).copy()
        if np.any(self.init_hits < 0) or np.any(self.init_misses < 0):
            raise ValueError('MLE priors must be non-negative')
        self.reset()

    def reset(self):
        super(MLEBandit, self).reset()
        self.hits = self.init_hits.copy()
        self.misses = self.init_misses.copy()

    def weights(self, available):
        raise NotImplementedError

    def scores(self, available, value_fn):
        weights = self.weights(available)
        return [value_fn(arm, w, 0) for arm, w in zip(available, weights)]

    def next(self, available, value_fn=identity):
        """Sample an arm from the categorical distribution given by the weights. """
        available = list(available)
        if len(available) == 0:
            return None
        if len(available) == 1:
            return available[0]
        weights = np.asarray(self.scores(available, value_fn), dtype=float)
        weights[~np.isfinite(weights) | (weights < 0)] = 0.0
        total = weights.sum()
        if total <= 0:
            return available[self.rng.integers(len(available))]
        cumulative = np.cumsum(weights)
        j = int(np.searchsorted(cumulative, self.rng.random() * total, side='right'))
        return available[min(j, len(available) - 1)]

    def next_list(self, available, k, value_fn=identity):
        return self._next_list_greedy(available, k, value_fn)

    def get_stats(self, arm):
        if not 0 <= arm < self.num_arms:
            return None
        return (int(round(self.hits[arm] - self.init_hits[arm])),
                int(round(self.misses[arm] - self.init_misses[arm])))


class PopularityMLE(MLEBandit):
    def __init__(self, num_arms, alpha=1.0, rng_seed=0):
        """Sample arms with probability proportional to their number of hits. """
        super(PopularityMLE, self).__init__(num_arms, alpha=alpha, beta=0.0, rng_seed=rng_seed)

    def weights(self, available):
        return self.hits[available]

    def update(self, arm, reward):
        self._check_arm(arm)
        self.hits[arm] += reward
        if reward == 0:
            self.misses[arm] += 1


class AverageRatingMLE(MLEBandit):
    def __init__(self, num_arms, alpha=1.0, beta=1.0, rng_seed=0):
        """Sample arms with probability proportional to hits / (hits + misses). """
        super(AverageRatingMLE, self).__init__(num_arms, alpha=alpha, beta=beta, rng_seed=rng_seed)

    def weights(self, available):
        hits = self.hits[available]
        total = hits + self.misses[available]
        return np.divide(hits, total, out=np.zeros_like(hits), where=total > 0)

    def update(self, arm, reward):
        self._check_arm(arm)
        self._check_reward(reward)
        self.hits[arm] += reward
        self.misses[arm] += 1.0 - reward
