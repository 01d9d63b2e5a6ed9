"""Define which facts a recommendation discloses.

Every strategy maps a recommended (uidx, iidx) to two lists of Rating: the facts the
learner (and the availability bookkeeping) receives, and the facts the metrics and the
end condition receive. They differ when one decision reveals more than the pair itself,
e.g. both directions of a link in a social network.
"""

import numpy as np

from core.dataset import Rating, KnowledgeDataUse


class UpdateStrategy(object):
    def init(self, dataset):
        self.dataset = dataset

    def select_update(self, uidx, iidx, selection):
        """
        Args:
            uidx: int, target user
            iidx: int, recommended item
            selection: Selection, tells which pairs are still available
        Return:
            (learner_facts, metric_facts): two lists of Rating
        """
        raise NotImplementedError

    def warmup_facts(self, warmup):
        """Facts of the warm-up that the learner must be trained with. """
        if warmup is None:
            return []
        return list(warmup.full_training)


class GeneralUpdate(UpdateStrategy):
    def _value(self, uidx, iidx):
        return self.dataset.preference(uidx, iidx)

    def select_update(self, uidx, iidx, selection):
        if not selection.is_available(uidx, iidx):
            return [], []
        value = self._value(uidx, iidx)
        facts = [Rating(uidx, iidx, np.nan if value is None else value)]
        return facts, facts


class WithKnowledgeUpdate(GeneralUpdate):
    def __init__(self, data_use=KnowledgeDataUse.ALL):
        """Disclose only the ratings of one knowledge subset; the rest count as not rated. """
        self.data_use = data_use

    def _value(self, uidx, iidx):
        return self.dataset.subset_preference(uidx, iidx, self.data_use)


class ContactUpdate(UpdateStrategy):
    def __init__(self, not_reciprocal=False):
        """
        Args:
            not_reciprocal: bool, in directed networks, discovering u -> v also reveals v -> u
        """
        self.not_reciprocal = not_reciprocal

    def select_update(self, uidx, iidx, selection):
        if not selection.is_available(uidx, iidx):
            return [], []
        value = self.dataset.preference(uidx, iidx)
        # missing link: negative
        value = 0.0 if value is None else value
        fact = Rating(uidx, iidx, value)
        learner_facts, metric_facts = [fact], [fact]
        if not self.dataset.directed:
            learner_facts.append(Rating(iidx, uidx, value))
        elif self.not_reciprocal and value > 0.0 and selection.is_available(iidx, uidx):
            reverse = self.dataset.preference(iidx, uidx)
            learner_facts.append(Rating(iidx, uidx, 0.0 if reverse is None else reverse))
        return learner_facts, metric_facts

    def warmup_facts(self, warmup):
        if warmup is None:
            return []
        facts = list(warmup.full_training)
        for rating in warmup.full_training:
            if not self.dataset.directed:
                facts.append(Rating(rating.iidx, rating.uidx, rating.value))
            elif self.not_reciprocal and rating.value > 0.0:
                reverse = self.dataset.preference(rating.iidx, rating.uidx)
                facts.append(Rating(rating.iidx, rating.uidx, 0.0 if reverse is None else reverse))
        return facts


class ReplayerUpdate(UpdateStrategy):
    """Off-policy replay: only a recommendation that matches the logged item is disclosed. """

    def select_update(self, uidx, iidx, selection):
        if self.dataset.current_uidx() == uidx and self.dataset.featured_iidx() == iidx:
            facts = [Rating(uidx, iidx, self.dataset.featured_rating())]
            return facts, facts
        return [], []
