"""Define an epsilon-greedy PMF bandit. """

from algorithms.pmf_model import PMFBanditRecommender
from core.contextual_bandit import rank_candidates


class EpsilonGreedyPMF(PMFBanditRecommender):
    def __init__(self, num_users, num_items, epsilon=0.1, name='EpsilonGreedyPMF', **kwargs):
        """Explore a random candidate with probability epsilon, otherwise exploit p_u . q_i.
        """
        super(EpsilonGreedyPMF, self).__init__(num_users, num_items, name=name, **kwargs)
        if not 0.0 <= epsilon <= 1.0:
            raise ValueError('epsilon must be in [0, 1]')
        self.epsilon = epsilon

    def score(self, uidx, cand_items):
        return self.model.mean(uidx, cand_items)

    def item_rec(self, uidx, cand_items, m=1):
        ranking = [cand_items[j] for j in rank_candidates(self.score(uidx, cand_items), len(cand_items), self.rng)]
        rec_items = []
        for _ in range(m):
            if self.rng.random() < self.epsilon:
                item = ranking[self.rng.integers(len(ranking))]
            else:
                item = ranking[0]
            ranking.remove(item)
            rec_items.append(item)
        return rec_items
