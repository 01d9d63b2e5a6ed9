"""Define non-personalised baselines that rank items by what every user disclosed so far. """

import numpy as np

from core.contextual_bandit import InteractiveRecommender, rank_candidates


class ScoreRecommender(InteractiveRecommender):
    """Recommend the candidates with the highest per-item score; ties are broken at random. """

    def scores(self, cand_items):
        raise NotImplementedError

    def item_rec(self, uidx, cand_items, m=1):
        positions = rank_candidates(self.scores(cand_items), m, self.rng)
        return [cand_items[j] for j in positions]


class PopularityRecommender(ScoreRecommender):
    def __init__(self, num_users, num_items, relevance, ignore_not_rated=True, not_rated=0.0, rng_seed=0,
                 name='Popularity'):
        """Score each item by its number of relevant ratings.

        Args:
            relevance: callable value -> bool
        """
        super(PopularityRecommender, self).__init__(num_users, num_items, ignore_not_rated, not_rated,
                                                    rng_seed, name)
        self.relevance = relevance

    def reset(self):
        self.counts = np.zeros(self.num_items)

    def scores(self, cand_items):
        return self.counts[cand_items]

    def update_method(self, uidx, iidx, value):
        if self.relevance(value):
            self.counts[iidx] += 1.0


class AverageRatingRecommender(ScoreRecommender):
    def __init__(self, num_users, num_items, ignore_not_rated=True, not_rated=0.0, rng_seed=0,
                 name='AverageRating'):
        """Score each item by its average rating, smoothed towards the global average.

        score_i = (sum_i + total / num_items) / (n_i + num_ratings / num_items)
        """
        super(AverageRatingRecommender, self).__init__(num_users, num_items, ignore_not_rated, not_rated,
                                                       rng_seed, name)

    def reset(self):
        self.sums = np.zeros(self.num_items)
        self.counts = np.zeros(self.num_items)
        self.total = 0.0
        self.num_ratings = 0

    def scores(self, cand_items):
        num = self.sums[cand_items] + self.total / self.num_items
        den = self.counts[cand_items] + self.num_ratings / self.num_items
        return np.divide(num, den, out=np.zeros_like(num), where=den > 0)

    def update_method(self, uidx, iidx, value):
        self.sums[iidx] += value
        self.counts[iidx] += 1
        self.total += value
        self.num_ratings += 1
