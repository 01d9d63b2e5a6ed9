"""Define Beta-Bernoulli Thompson sampling bandits. """

import numpy as np

from core.multi_armed_bandit import MultiArmedBandit


class ThompsonSampling(MultiArmedBandit):
    def __init__(self, num_arms, alphas=1.0, betas=1.0, rng_seed=0):
        """Each arm keeps a Beta(alpha, beta) posterior over its reward.

        Args:
            alphas: float or array of `num_arms` floats, prior successes
            betas: float or array of `num_arms` floats, prior failures
        """
        super(ThompsonSampling, self).__init__(num_arms, rng_seed)
        self.init_alphas = np.broadcast_to(np.asarray(alphas, dtype=float), (num_arms,)).copy()
        self.init_betas = np.broadcast_to(np.asarray(betas, dtype=float), (num_arms,)).copy()
        if np.any(self.init_alphas <= 0) or np.any(self.init_betas <= 0):
            raise ValueError('Beta priors must be positive')
        self.reset()

    def reset(self):
        super(ThompsonSampling, self).reset()
        self.alphas = self.init_alphas.copy()
        self.betas = self.init_betas.copy()

    def _sample(self, arm):
        return self.rng.beta(self.alphas[arm], self.betas[arm])

    def scores(self, available, value_fn):
        return [value_fn(arm, self._sample(arm), 0) for arm in available]

    def update(self, arm, reward):
        self._check_arm(arm)
        self._check_reward(reward)
        self.alphas[arm] += reward
        self.betas[arm] += 1.0 - reward

    def get_stats(self, arm):
        if not 0 <= arm < self.num_arms:
            return None
        return (int(round(self.alphas[arm] - self.init_alphas[arm])),
                int(round(self.betas[arm] - self.init_betas[arm])))


class DelayedThompsonSampling(ThompsonSampling):
    def __init__(self, num_arms, alphas=1.0, betas=1.0, delay=10, rng_seed=0):
        """Thompson sampling that reuses each arm's sample for `delay` decisions.

        Args:
            delay: int, number of decisions a sampled score is kept before it is resampled
        """
        if delay < 0:
            raise ValueError('delay must be non-negative')
        self.delay = delay
        super(DelayedThompsonSampling, self).__init__(num_arms, alphas, betas, rng_seed)

    def reset(self):
        super(DelayedThompsonSampling, self).reset()
        self.cached = self.rng.beta(self.alphas, self.betas)
        self.remaining = np.full(self.num_arms, self.delay, dtype=int)

    def _sample(self, arm):
        if self.remaining[arm] > 0:
            self.remaining[arm] -= 1
        else:
            self.cached[arm] = self.rng.beta(self.alphas[arm], self.betas[arm])
            self.remaining[arm] = self.delay
        return self.cached[arm]

    def update(self, arm, reward):
        super(DelayedThompsonSampling, self).update(arm, reward)
        self.cached[arm] = self.rng.beta(self.alphas[arm], self.betas[arm])
        self.remaining[arm] = self.delay
