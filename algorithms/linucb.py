"""Define linear ucb recommendation policies over PMF factors. """

import numpy as np
from scipy.special import expit

from algorithms.pmf_model import PMFBanditRecommender


class LinUCBPMF(PMFBanditRecommender):
    def __init__(self, num_users, num_items, alpha=1.0, name='LinUCBPMF', **kwargs):
        """LinUCB with the item factors as arm features.

        score = p_u . q_i + alpha * sqrt(q_i^T Sigma_u q_i)
        """
        super(LinUCBPMF, self).__init__(num_users, num_items, name=name, **kwargs)
        if alpha < 0:
            raise ValueError('alpha must be non-negative')
        self.alpha = alpha

    def score(self, uidx, cand_items):
        mean = self.model.mean(uidx, cand_items) # n_cand,
        CI = self.alpha * np.sqrt(np.maximum(self.model.uncertainty(uidx, cand_items), 0.0))
        return mean + CI


class GLMUCBPMF(LinUCBPMF):
    """Generalised linear model UCB.
    We only consider the logistic link here.
    """

    def __init__(self, num_users, num_items, alpha=1.0, name='GLMUCBPMF', **kwargs):
        super(GLMUCBPMF, self).__init__(num_users, num_items, alpha=alpha, name=name, **kwargs)

    def reset(self):
        super(GLMUCBPMF, self).reset()
        self.counters = np.ones(self.num_users) # key: uidx, value: 1 + number of updates

    def train(self, ratings):
        super(GLMUCBPMF, self).train(ratings)
        if len(ratings) > 0:
            self.counters += np.bincount([r[0] for r in ratings], minlength=self.num_users)

    def score(self, uidx, cand_items):
        mean = expit(self.model.mean(uidx, cand_items))
        var = np.maximum(self.model.uncertainty(uidx, cand_items), 0.0)
        CI = self.alpha * np.sqrt(np.log(self.counters[uidx]) * var)
        return mean + CI

    def update_method(self, uidx, iidx, value):
        super(GLMUCBPMF, self).update_method(uidx, iidx, value)
        self.counters[uidx] += 1
