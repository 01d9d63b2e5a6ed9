"""Define the interactive user-based kNN bandit.

Neighbours are chosen by a stochastic similarity: for every other user v, a similarity
is sampled from Beta(alpha + c_uv, beta + n_v - c_uv), where c_uv accumulates the
products of the ratings u and v share and n_v is the number of ratings of v. Sampling
explores uncertain neighbours the way Thompson sampling explores uncertain arms.
"""

import math

import numpy as np

from core.contextual_bandit import InteractiveRecommender, rank_candidates


class BetaStochasticSimilarity(object):
    def __init__(self, num_users, alpha=1.0, beta=1.0, rng=None):
        if alpha <= 0 or beta <= 0:
            raise ValueError('Beta priors must be positive')
        self.num_users = num_users
        self.alpha = alpha
        self.beta = beta
        self.rng = rng if rng is not None else np.random.default_rng()
        self.initialize()

    def initialize(self):
        self.co_ratings = {} # key: uidx, value: dict vidx -> sum of shared rating products
        self.user_counts = np.zeros(self.num_users)

    def update_norm(self, uidx):
        self.user_counts[uidx] += 1

    def _add(self, uidx, vidx, p):
        row = self.co_ratings.setdefault(uidx, {})
        row[vidx] = row.get(vidx, 0.0) + p
        if row[vidx] == 0.0:
            del row[vidx]

    def update(self, uidx, vidx, uval, vval):
        """Account for an item rated `uval` by u and `vval` by v. """
        p = uval * vval
        if math.isnan(p) or p <= 0:
            return
        self._add(uidx, vidx, p)
        self._add(vidx, uidx, p)

    def update_del(self, uidx, vidx, uval, vval):
        """Undo a previous `update` with the same values. """
        p = uval * vval
        if math.isnan(p) or p <= 0:
            return
        self._add(uidx, vidx, -p)
        self._add(vidx, uidx, -p)

    def sample(self, uidx):
        """Sampled similarity of `uidx` to every user; nan for `uidx` itself. """
        hits = np.zeros(self.num_users)
        row = self.co_ratings.get(uidx)
        if row:
            hits[list(row.keys())] = list(row.values())
        misses = np.maximum(self.user_counts - hits, 0.0)
        sims = self.rng.beta(hits + self.alpha, misses + self.beta)
        sims[uidx] = np.nan
        return sims


class InteractiveUserBasedKNN(InteractiveRecommender):
    def __init__(self, num_users, num_items, k=10, alpha=1.0, beta=1.0, ignore_zeros=True, ignore_not_rated=True,
                 not_rated=0.0, rng_seed=0, name='UserKNN'):
        """Args:
                k: int, number of neighbours; 0 or less uses every user
                alpha: float, prior of the Beta similarity
                beta: float, prior of the Beta similarity
                ignore_zeros: bool, items whose neighbour contribution is not positive get no score
        """
        super(InteractiveUserBasedKNN, self).__init__(num_users, num_items, ignore_not_rated, not_rated,
                                                      rng_seed, name)
        self.k = k if k > 0 else num_users
        self.alpha = alpha
        self.beta = beta
        self.ignore_zeros = ignore_zeros

    def reset(self):
        self.user_ratings = {} # key: uidx, value: dict iidx -> rating
        self.item_ratings = {} # key: iidx, value: dict uidx -> rating
        self.sim = BetaStochasticSimilarity(self.num_users, self.alpha, self.beta, self.rng)

    def item_rec(self, uidx, cand_items, m=1):
        sims = self.sim.sample(uidx)
        neighbours = [vidx for vidx in rank_candidates(sims, self.k, self.rng) if vidx != uidx]

        position = {iidx: j for j, iidx in enumerate(cand_items)}
        scores = np.zeros(len(cand_items))
        scored = np.zeros(len(cand_items), dtype=bool)
        for vidx in neighbours:
            for iidx, rating in self.user_ratings.get(vidx, {}).items():
                j = position.get(iidx)
                if j is None:
                    continue
                p = sims[vidx] * rating
                if not self.ignore_zeros or p > 0:
                    scores[j] += p
                    scored[j] = True
        # items no neighbour scored are ranked last, in random order
        scores[~scored] = -np.inf
        positions = rank_candidates(scores, m, self.rng)
        return [cand_items[j] for j in positions]

    def update_method(self, uidx, iidx, value):
        ratings = self.user_ratings.setdefault(uidx, {})
        old = ratings.get(iidx)
        raters = self.item_ratings.setdefault(iidx, {})
        for vidx, vval in raters.items():
            if vidx == uidx:
                continue
            if old is not None:
                self.sim.update_del(uidx, vidx, old, vval)
            self.sim.update(uidx, vidx, value, vval)
        if old is None:
            self.sim.update_norm(uidx)
        ratings[iidx] = value
        raters[uidx] = value
