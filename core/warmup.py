"""Build the warm-up of a run: the history consumed before the first interactive iteration. """

import logging
from enum import Enum

import numpy as np

from core.availability import Availability
from core.dataset import Rating

logger = logging.getLogger(__name__)


class WarmupType(Enum):
    ONLY_RATINGS = 'onlyratings'
    FULL = 'full'

    @classmethod
    def from_string(cls, name):
        name = name.lower().replace('_', '')
        for t in cls:
            if t.value == name:
                return t
        raise ValueError('Unknown warm-up type: {}'.format(name))


class Warmup(object):
    def __init__(self, full_training, clean_training, availability, num_rel):
        """
        Args:
            full_training: list of Rating, including unrated pairs (value nan) in FULL mode
            clean_training: list of Rating with a ground-truth value
            availability: Availability after consuming the warm-up
            num_rel: int, number of relevant ratings in the warm-up
        """
        self.full_training = full_training
        self.clean_training = clean_training
        self.availability = availability
        self.num_rel = num_rel

    @classmethod
    def load(cls, dataset, pairs, warmup_type=WarmupType.ONLY_RATINGS):
        """Consume the (uidx, iidx) pairs of a training split.

        Rated pairs are always consumed; unrated ones only with `WarmupType.FULL`.
        """
        availability = Availability.full(range(dataset.num_users()), dataset.num_items())
        return cls._consume(dataset, pairs, warmup_type, availability)

    @classmethod
    def _consume(cls, dataset, pairs, warmup_type, availability):
        full_training, clean_training = [], []
        num_rel = 0
        for uidx, iidx in pairs:
            value = dataset.preference(uidx, iidx)
            if value is not None:
                clean_training.append(Rating(uidx, iidx, value))
                full_training.append(Rating(uidx, iidx, value))
                availability.remove(uidx, iidx)
                cls._consume_reverse(dataset, availability, uidx, iidx)
                num_rel += int(dataset.is_relevant(value))
            elif warmup_type == WarmupType.FULL:
                full_training.append(Rating(uidx, iidx, np.nan))
                availability.remove(uidx, iidx)
        logger.info('Warm-up: %d ratings (%d with value, %d relevant)',
                    len(full_training), len(clean_training), num_rel)
        return cls(full_training, clean_training, availability, num_rel)

    @classmethod
    def _consume_reverse(cls, dataset, availability, uidx, iidx):
        pass


class ContactWarmup(Warmup):
    @classmethod
    def load(cls, dataset, pairs, warmup_type=WarmupType.ONLY_RATINGS):
        """Warm-up for contact datasets: nobody is recommended to themselves, and a
        known link also consumes its reverse when the graph is undirected or
        reciprocal links are not counted."""
        availability = Availability.full(range(dataset.num_users()), dataset.num_items(), exclude_self=True)
        return cls._consume(dataset, pairs, warmup_type, availability)

    @classmethod
    def _consume_reverse(cls, dataset, availability, uidx, iidx):
        if not dataset.directed or not dataset.use_reciprocal():
            availability.remove(iidx, uidx)
