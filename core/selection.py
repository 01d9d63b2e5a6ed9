"""Define how the loop picks the target user and the candidate items of each iteration. """

from core.availability import Availability


class RandomUserSelector(object):
    """Draw a user uniformly at random from the pool. """

    def init(self, pool, rng):
        pass

    def next(self, pool, rng):
        if len(pool) == 0:
            return None
        return int(rng.integers(len(pool)))

    def removed(self, index):
        pass


class RoundRobinUserSelector(object):
    """Visit the pool in order, cycling back to the start. """

    def init(self, pool, rng):
        self.position = 0

    def _shuffle(self, pool, rng):
        pass

    def next(self, pool, rng):
        if len(pool) == 0:
            return None
        if self.position >= len(pool):
            self.position = 0
            self._shuffle(pool, rng)
        index = self.position
        self.position += 1
        return index

    def removed(self, index):
        if index < self.position:
            self.position -= 1


class RandomRoundRobinUserSelector(RoundRobinUserSelector):
    """Round robin over a pool that is reshuffled at the start of every pass. """

    def _shuffle(self, pool, rng):
        rng.shuffle(pool)


USER_SELECTORS = {
    'random': RandomUserSelector,
    'roundrobin': RoundRobinUserSelector,
    'randomroundrobin': RandomRoundRobinUserSelector,
}


class Selection(object):
    def init(self, dataset, rng, warmup=None):
        raise NotImplementedError

    def select_target(self):
        """
        Return:
            uidx: int, or None if no user can receive recommendations
        """
        raise NotImplementedError

    def select_candidates(self, uidx):
        raise NotImplementedError

    def update(self, uidx, iidx, value):
        """Consume the item disclosed to the learner. """
        raise NotImplementedError

    def is_available(self, uidx, iidx):
        raise NotImplementedError


class NonSequentialSelection(Selection):
    def __init__(self, user_selector=None):
        """Pick any user that still has available items; the candidates are all of them.

        Args:
            user_selector: RandomUserSelector (default), RoundRobinUserSelector or RandomRoundRobinUserSelector
        """
        self.user_selector = user_selector if user_selector is not None else RandomUserSelector()
        self.availability = Availability()
        self.pool = []

    def init(self, dataset, rng, warmup=None):
        self.rng = rng
        base = warmup.availability if warmup is not None else Availability.from_dataset(dataset)
        self.availability = base.restrict(dataset.users_with_preferences())
        self.pool = self.availability.users()
        rng.shuffle(self.pool)
        self.user_selector.init(self.pool, rng)

    def select_target(self):
        index = self.user_selector.next(self.pool, self.rng)
        if index is None:
            return None
        return self.pool[index]

    def select_candidates(self, uidx):
        return self.availability.candidates(uidx)

    def _drop_user(self, uidx):
        if uidx in self.pool:
            index = self.pool.index(uidx)
            del self.pool[index]
            self.user_selector.removed(index)

    def update(self, uidx, iidx, value):
        if self.availability.remove(uidx, iidx) and self.availability.num_available(uidx) == 0:
            self._drop_user(uidx)

    def is_available(self, uidx, iidx):
        return self.availability.is_available(uidx, iidx)


class SequentialSelection(Selection):
    """Follow the events of a StreamDataset in order. """

    def init(self, dataset, rng, warmup=None):
        self.dataset = dataset
        self.dataset.restart()

    def select_target(self):
        if self.dataset.has_ended():
            return None
        self.dataset.advance()
        return self.dataset.current_uidx()

    def select_candidates(self, uidx):
        return self.dataset.candidate_iidxs()

    def update(self, uidx, iidx, value):
        pass

    def is_available(self, uidx, iidx):
        return True
