"""Define upper confidence bound bandits. """

import math

import numpy as np

from core.multi_armed_bandit import MultiArmedBandit


class UCB1(MultiArmedBandit):
    def __init__(self, num_arms, alpha=2.0, rng_seed=0):
        """UCB1 (Auer et al. 2002).

        Args:
            alpha: float, weight of the exploration term
        """
        super(UCB1, self).__init__(num_arms, rng_seed)
        self.alpha = alpha
        self.reset()

    def reset(self):
        super(UCB1, self).reset()
        self.values = np.zeros(self.num_arms)
        self.num_times = np.zeros(self.num_arms, dtype=int)
        self.num_iter = 0

    def _bonus(self, arm):
        return math.sqrt(self.alpha * math.log(self.num_iter + 1) / self.num_times[arm])

    def scores(self, available, value_fn):
        scores = []
        for arm in available:
            if self.num_times[arm] == 0:
                scores.append(math.inf)
            else:
                scores.append(value_fn(arm, self.values[arm], self.num_times[arm]) + self._bonus(arm))
        return scores

    def update(self, arm, reward):
        self._check_arm(arm)
        self.num_times[arm] += 1
        self.num_iter += 1
        self.values[arm] += (reward - self.values[arm]) / self.num_times[arm]

    def get_stats(self, arm):
        if not 0 <= arm < self.num_arms:
            return None
        hits = int(round(self.num_times[arm] * self.values[arm]))
        return hits, int(self.num_times[arm]) - hits


class UCB1Tuned(UCB1):
    def __init__(self, num_arms, rng_seed=0):
        """UCB1-tuned: the exploration term is scaled by the empirical variance of the arm,
        capped at 1/4 (the largest variance of a Bernoulli reward).
        """
        super(UCB1Tuned, self).__init__(num_arms, alpha=1.0, rng_seed=rng_seed)

    def reset(self):
        super(UCB1Tuned, self).reset()
        self.sq_dev = np.zeros(self.num_arms) # sum of squared deviations from the running mean

    def _bonus(self, arm):
        n = self.num_times[arm]
        log_t = math.log(self.num_iter + 1)
        var = self.sq_dev[arm] / n
        return math.sqrt(log_t / n * min(0.25, var + math.sqrt(2.0 * log_t / n)))

    def update(self, arm, reward):
        self._check_arm(arm)
        old_mean = self.values[arm]
        super(UCB1Tuned, self).update(arm, reward)
        self.sq_dev[arm] += (reward - old_mean) * (reward - self.values[arm])
