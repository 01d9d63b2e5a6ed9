"""Define epsilon-greedy bandits and the rules they use to accumulate arm values. """

import numpy as np

from core.multi_armed_bandit import MultiArmedBandit, identity


def stationary():
    """Incremental mean of the rewards. """
    def update(old_value, reward, num_times):
        return old_value + (reward - old_value) / num_times
    return update


def non_stationary(step):
    """Exponential recency-weighted average with constant step size. """
    if not 0.0 < step <= 1.0:
        raise ValueError('step must be in (0, 1]')

    def update(old_value, reward, num_times):
        return old_value + step * (reward - old_value)
    return update


def use_all():
    """Sum of the rewards. """
    def update(old_value, reward, num_times):
        return old_value + reward
    return update


def count():
    """Number of positive rewards. """
    def update(old_value, reward, num_times):
        return old_value + (1.0 if reward > 0 else 0.0)
    return update


UPDATE_FUNCTIONS = {
    'stationary': stationary,
    'nonstationary': non_stationary,
    'useall': use_all,
    'count': count,
}


def get_update_function(name, step=0.1):
    key = name.lower().replace('_', '')
    if key not in UPDATE_FUNCTIONS:
        raise NotImplementedError('Unknown epsilon-greedy update function: {}'.format(name))
    if key == 'nonstationary':
        return non_stationary(step)
    return UPDATE_FUNCTIONS[key]()


class EpsilonGreedy(MultiArmedBandit):
    def __init__(self, num_arms, epsilon=0.1, update_function=None, rng_seed=0):
        """With probability epsilon pick a random arm, otherwise the arm with the best value.

        Args:
            epsilon: float in [0, 1], exploration probability
            update_function: callable (old_value, reward, num_times) -> new value,
                `stationary()` by default
        """
        super(EpsilonGreedy, self).__init__(num_arms, rng_seed)
        if not 0.0 <= epsilon <= 1.0:
            raise ValueError('epsilon must be in [0, 1]')
        self.epsilon = epsilon
        self.update_function = update_function if update_function is not None else stationary()
        self.reset()

    def reset(self):
        super(EpsilonGreedy, self).reset()
        self.values = np.zeros(self.num_arms)
        self.num_times = np.zeros(self.num_arms, dtype=int)
        self.hits = np.zeros(self.num_arms)
        self.num_iter = 1

    def current_epsilon(self):
        return self.epsilon

    def scores(self, available, value_fn):
        return [value_fn(arm, self.values[arm], self.num_times[arm]) for arm in available]

    def next(self, available, value_fn=identity):
        available = list(available)
        if len(available) == 0:
            return None
        if len(available) == 1:
            return available[0]
        if self.rng.random() < self.current_epsilon():
            return available[self.rng.integers(len(available))]
        return super(EpsilonGreedy, self).next(available, value_fn)

    def next_list(self, available, k, value_fn=identity):
        return self._next_list_greedy(available, k, value_fn)

    def update(self, arm, reward):
        self._check_arm(arm)
        self.num_times[arm] += 1
        self.hits[arm] += reward
        self.values[arm] = self.update_function(self.values[arm], reward, self.num_times[arm])
        self.num_iter += 1

    def get_stats(self, arm):
        if not 0 <= arm < self.num_arms:
            return None
        hits = int(round(self.hits[arm]))
        return hits, int(self.num_times[arm]) - hits


class EpsilonTGreedy(EpsilonGreedy):
    def __init__(self, num_arms, alpha=1.0, update_function=None, rng_seed=0):
        """Epsilon-greedy whose exploration probability decays as min(1, alpha * num_arms / t),
        t being the number of updates received so far plus one.
        """
        if alpha <= 0:
            raise ValueError('alpha must be positive')
        self.alpha = alpha
        super(EpsilonTGreedy, self).__init__(num_arms, epsilon=1.0, update_function=update_function,
                                             rng_seed=rng_seed)

    def current_epsilon(self):
        return min(1.0, self.alpha * self.num_arms / self.num_iter)
