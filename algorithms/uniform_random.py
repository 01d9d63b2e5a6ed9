"""Define a uniform random recommendation policy. """

from core.contextual_bandit import InteractiveRecommender


class UniformRandom(InteractiveRecommender):
    def __init__(self, num_users, num_items, rng_seed=0, name='UniformRandom'):
        """Uniform random recommend items to user.
        """
        super(UniformRandom, self).__init__(num_users, num_items, rng_seed=rng_seed, name=name)

    def item_rec(self, uidx, cand_items, m=1):
        """
        Args:
            uidx: int, a user index
            cand_items: a list of int item indexes
            m: int, number of items to rec

        Return:
            items: a list of `m` int
        """
        rec_items = self.rng.choice(cand_items, size=m, replace=False).tolist()
        return rec_items

    def update_method(self, uidx, iidx, value):
        pass
