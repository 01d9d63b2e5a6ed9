"""Define a recommender that treats every item as an arm of a context-free bandit. """

from core.contextual_bandit import InteractiveRecommender
from core.multi_armed_bandit import identity


class ItemBanditRecommender(InteractiveRecommender):
    def __init__(self, num_users, num_items, bandit, value_fn=identity, relevance=None, ignore_not_rated=True,
                 not_rated=0.0, rng_seed=0, name='ItemBandit'):
        """All users share the same arms: the bandit learns which items are good for everyone.

        Args:
            bandit: MultiArmedBandit with `num_items` arms
            value_fn: callable (arm, value, num_times) -> float, score transformation
            relevance: callable value -> bool, or None; when given the bandit is rewarded
                1.0 for relevant values and 0.0 otherwise
        """
        super(ItemBanditRecommender, self).__init__(num_users, num_items, ignore_not_rated, not_rated,
                                                    rng_seed, name)
        if bandit.num_arms != num_items:
            raise ValueError('The bandit has {} arms for {} items'.format(bandit.num_arms, num_items))
        self.bandit = bandit
        self.value_fn = value_fn
        self.relevance = relevance

    def reset(self):
        self.bandit.reset()

    def item_rec(self, uidx, cand_items, m=1):
        if m == 1:
            return [self.bandit.next(cand_items, self.value_fn)]
        return self.bandit.next_list(cand_items, m, self.value_fn)

    def reward(self, value):
        if self.relevance is None:
            return value
        return 1.0 if self.relevance(value) else 0.0

    def update_method(self, uidx, iidx, value):
        self.bandit.update(iidx, self.reward(value))

    def get_stats(self, iidx):
        return self.bandit.get_stats(iidx)
