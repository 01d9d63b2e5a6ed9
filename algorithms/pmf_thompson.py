"""Define Thompson sampling over the Gaussian posterior of the PMF factors. """

import numpy as np
import scipy.linalg

from algorithms.pmf_model import PMFBanditRecommender


def _sqrt_cov(cov):
    """Matrix square root L (L L^T = cov) via eigen decomposition; works for stacks of matrices. """
    w, V = np.linalg.eigh(cov)
    return V * np.sqrt(np.maximum(w, 0.0))[..., None, :]


class ThompsonSamplingPMF(PMFBanditRecommender):
    def __init__(self, num_users, num_items, name='ThompsonSamplingPMF', **kwargs):
        """Sample p_u ~ N(p_u, Sigma_u) and q_i ~ N(q_i, Sigma_i) and rank by their dot product.

        The sampled item vectors of the recommended items are kept: when their rewards are
        disclosed, the user system is updated with the sampled vector instead of the mean.
        """
        super(ThompsonSamplingPMF, self).__init__(num_users, num_items, name=name, **kwargs)

    def reset(self):
        super(ThompsonSamplingPMF, self).reset()
        self._refresh_item_roots()
        self.user_roots = {} # key: uidx, value: sqrt of Sigma_u, dropped on update
        self.last_samples = {} # key: (uidx, iidx), value: sampled q_i of the last recommendation

    def train(self, ratings):
        super(ThompsonSamplingPMF, self).train(ratings)
        self._refresh_item_roots()
        self.user_roots = {}

    def _refresh_item_roots(self):
        self.item_roots = _sqrt_cov(self.model.cov_Q)

    def _user_root(self, uidx):
        if uidx not in self.user_roots:
            w, V = scipy.linalg.eigh(self.model.cov_P[uidx])
            self.user_roots[uidx] = V * np.sqrt(np.maximum(w, 0.0))
        return self.user_roots[uidx]

    def score(self, uidx, cand_items):
        k = self.model.k
        p = self.model.P[uidx] + self._user_root(uidx).dot(self.rng.standard_normal(k))
        z = self.rng.standard_normal((len(cand_items), k))
        Q = self.model.Q[cand_items] + np.einsum('nij,nj->ni', self.item_roots[cand_items], z)
        self._samples = Q
        return Q.dot(p)

    def next(self, uidx, cand_items):
        """Sample even for a single candidate, so its update uses a sampled vector. """
        if len(cand_items) == 0:
            return None
        return self.item_rec(uidx, list(cand_items), 1)[0]

    def item_rec(self, uidx, cand_items, m=1):
        rec_items = super(ThompsonSamplingPMF, self).item_rec(uidx, cand_items, m)
        position = {iidx: j for j, iidx in enumerate(cand_items)}
        self.last_samples = {(uidx, iidx): self._samples[position[iidx]] for iidx in rec_items}
        self._samples = None
        return rec_items

    def item_vector(self, uidx, iidx):
        q = self.last_samples.pop((uidx, iidx), None)
        if q is None:
            return self.model.Q[iidx]
        return q

    def update_method(self, uidx, iidx, value):
        super(ThompsonSamplingPMF, self).update_method(uidx, iidx, value)
        self.user_roots.pop(uidx, None)
