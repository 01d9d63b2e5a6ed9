"""Define the ground-truth datasets consumed by the recommendation loop.

A dataset maps external user/item ids to dense indexes and answers
`preference(uidx, iidx)`: the withheld rating disclosed when an item is recommended.
"""

import math
from collections import namedtuple, OrderedDict
from enum import Enum

import numpy as np

Rating = namedtuple('Rating', ['uidx', 'iidx', 'value'])


class KnowledgeDataUse(Enum):
    ONLY_KNOWN = 'known'
    ONLY_UNKNOWN = 'unknown'
    ALL = 'all'

    @classmethod
    def from_string(cls, name):
        name = name.lower()
        for use in cls:
            if use.value == name or use.name.lower() == name:
                return use
        raise ValueError('Unknown knowledge data use: {}'.format(name))


class Dataset(object):
    def __init__(self, users, items, ratings, threshold=0.5):
        """General offline dataset.

        Args:
            users: list of user ids; position gives the uidx
            items: list of item ids; position gives the iidx
            ratings: iterable of (uidx, iidx, value)
            threshold: float, values >= threshold are relevant
        """
        self.users = list(users)
        self.items = list(items)
        self.uid2index = {u: i for i, u in enumerate(self.users)}
        self.iid2index = {it: i for i, it in enumerate(self.items)}
        self.threshold = threshold

        self.prefs = OrderedDict() # key: uidx, value: dict iidx -> value
        self.num_ratings = 0
        self.num_rel = 0
        for uidx, iidx, value in ratings:
            user_prefs = self.prefs.setdefault(uidx, {})
            if iidx not in user_prefs:
                self.num_ratings += 1
            else:
                self.num_rel -= int(self.is_relevant(user_prefs[iidx]))
            user_prefs[iidx] = value
            self.num_rel += int(self.is_relevant(value))

    @classmethod
    def from_triplets(cls, triplets, threshold=0.5, **kwargs):
        """Build the index spaces from (user id, item id, value) triplets, in order of appearance."""
        users, items = OrderedDict(), OrderedDict()
        for u, i, _ in triplets:
            users.setdefault(u, len(users))
            items.setdefault(i, len(items))
        ratings = [(users[u], items[i], float(v)) for u, i, v in triplets]
        return cls(list(users), list(items), ratings, threshold=threshold, **kwargs)

    def num_users(self):
        return len(self.users)

    def num_items(self):
        return len(self.items)

    def user2uidx(self, u):
        return self.uid2index[u]

    def uidx2user(self, uidx):
        return self.users[uidx]

    def item2iidx(self, i):
        return self.iid2index[i]

    def iidx2item(self, iidx):
        return self.items[iidx]

    def is_relevant(self, value):
        return value is not None and not math.isnan(value) and value >= self.threshold

    def preference(self, uidx, iidx):
        """Return the ground-truth value of (uidx, iidx), or None if the pair is unrated."""
        return self.prefs.get(uidx, {}).get(iidx)

    def user_preferences(self, uidx):
        return self.prefs.get(uidx, {})

    def users_with_preferences(self):
        return [uidx for uidx, p in self.prefs.items() if len(p) > 0]

    def items_with_preferences(self):
        items = set()
        for p in self.prefs.values():
            items.update(p.keys())
        return sorted(items)

    def all_ratings(self):
        for uidx, p in self.prefs.items():
            for iidx, value in p.items():
                yield Rating(uidx, iidx, value)

    def __str__(self):
        return 'Users: {}\nItems: {}\nNum. ratings: {}\nNum. relevant: {}'.format(
            self.num_users(), self.num_items(), self.num_ratings, self.num_rel)


class ContactDataset(Dataset):
    def __init__(self, users, edges, directed=True, not_reciprocal=False):
        """Social network dataset: users are recommended other users.

        Args:
            users: list of node ids, used both as users and as items
            edges: iterable of (uidx, vidx) node index pairs
            directed: bool, if False each edge is stored in both directions
            not_reciprocal: bool, do not count the reverse of a discovered edge as a new hit
        """
        ratings = []
        for u, v in edges:
            ratings.append((u, v, 1.0))
            if not directed:
                ratings.append((v, u, 1.0))
        super(ContactDataset, self).__init__(users, users, ratings, threshold=0.5)
        self.directed = directed
        self.not_reciprocal = not_reciprocal
        self.num_recipr = sum(1 for r in self.all_ratings() if self.preference(r.iidx, r.uidx) is not None)
        if not_reciprocal:
            self.num_rel -= self.num_recipr // 2

    @classmethod
    def from_edges(cls, edges, directed=True, not_reciprocal=False):
        nodes = OrderedDict()
        for u, v in edges:
            nodes.setdefault(u, len(nodes))
            nodes.setdefault(v, len(nodes))
        index_edges = [(nodes[u], nodes[v]) for u, v in edges]
        return cls(list(nodes), index_edges, directed=directed, not_reciprocal=not_reciprocal)

    def use_reciprocal(self):
        return not self.not_reciprocal


class KnowledgeDataset(Dataset):
    def __init__(self, users, items, ratings, known, threshold=0.5):
        """Dataset where each rating records whether the user already knew the item.

        Args:
            ratings: iterable of (uidx, iidx, value)
            known: set of (uidx, iidx) pairs known before the rating was collected
        """
        super(KnowledgeDataset, self).__init__(users, items, ratings, threshold=threshold)
        self.known = set(known)
        self.num_rel_known = sum(1 for r in self.all_ratings()
                                 if (r.uidx, r.iidx) in self.known and self.is_relevant(r.value))

    @classmethod
    def from_quadruplets(cls, quadruplets, threshold=0.5):
        """Build from (user id, item id, value, known flag) quadruplets."""
        users, items = OrderedDict(), OrderedDict()
        ratings, known = [], []
        for u, i, v, k in quadruplets:
            uidx = users.setdefault(u, len(users))
            iidx = items.setdefault(i, len(items))
            ratings.append((uidx, iidx, float(v)))
            if k:
                known.append((uidx, iidx))
        return cls(list(users), list(items), ratings, known, threshold=threshold)

    def num_rel_unknown(self):
        return self.num_rel - self.num_rel_known

    def known_preference(self, uidx, iidx):
        if (uidx, iidx) in self.known:
            return self.preference(uidx, iidx)
        return None

    def unknown_preference(self, uidx, iidx):
        if (uidx, iidx) not in self.known:
            return self.preference(uidx, iidx)
        return None

    def subset_preference(self, uidx, iidx, data_use):
        if data_use == KnowledgeDataUse.ONLY_KNOWN:
            return self.known_preference(uidx, iidx)
        elif data_use == KnowledgeDataUse.ONLY_UNKNOWN:
            return self.unknown_preference(uidx, iidx)
        return self.preference(uidx, iidx)

    def subset_num_rel(self, data_use):
        if data_use == KnowledgeDataUse.ONLY_KNOWN:
            return self.num_rel_known
        elif data_use == KnowledgeDataUse.ONLY_UNKNOWN:
            return self.num_rel_unknown()
        return self.num_rel


class StreamDataset(object):
    def __init__(self, users, items, events, threshold=0.5):
        """Replay log: a fixed sequence of (uidx, featured iidx, rating, candidate iidxs) events.

        Only the featured item of the current event has a known rating.
        """
        self.users = list(users)
        self.items = list(items)
        self.uid2index = {u: i for i, u in enumerate(self.users)}
        self.iid2index = {it: i for i, it in enumerate(self.items)}
        self.events = list(events)
        self.threshold = threshold
        self.position = -1

    @classmethod
    def from_records(cls, records, threshold=0.5):
        """Build from (user id, featured item id, value, [candidate item ids]) records."""
        users, items = OrderedDict(), OrderedDict()
        events = []
        for u, i, v, cands in records:
            uidx = users.setdefault(u, len(users))
            iidx = items.setdefault(i, len(items))
            cand_idxs = [items.setdefault(c, len(items)) for c in cands]
            if iidx not in cand_idxs:
                cand_idxs.append(iidx)
            events.append((uidx, iidx, float(v), cand_idxs))
        return cls(list(users), list(items), events, threshold=threshold)

    def num_users(self):
        return len(self.users)

    def num_items(self):
        return len(self.items)

    def user2uidx(self, u):
        return self.uid2index[u]

    def uidx2user(self, uidx):
        return self.users[uidx]

    def item2iidx(self, i):
        return self.iid2index[i]

    def iidx2item(self, iidx):
        return self.items[iidx]

    def is_relevant(self, value):
        return value is not None and not math.isnan(value) and value >= self.threshold

    @property
    def num_rel(self):
        return sum(1 for e in self.events if self.is_relevant(e[2]))

    def restart(self):
        self.position = -1

    def advance(self):
        self.position += 1

    def has_ended(self):
        return self.position >= len(self.events) - 1

    def _current(self):
        if 0 <= self.position < len(self.events):
            return self.events[self.position]
        return None

    def current_uidx(self):
        event = self._current()
        return None if event is None else event[0]

    def featured_iidx(self):
        event = self._current()
        return None if event is None else event[1]

    def featured_rating(self):
        event = self._current()
        return np.nan if event is None else event[2]

    def candidate_iidxs(self):
        event = self._current()
        return [] if event is None else list(event[3])

    def preference(self, uidx, iidx):
        event = self._current()
        if event is not None and event[0] == uidx and event[1] == iidx:
            return event[2]
        return None

    def users_with_preferences(self):
        return sorted(set(e[0] for e in self.events))

    def __str__(self):
        return 'Users: {}\nItems: {}\nNum. events: {}\nNum. relevant: {}'.format(
            self.num_users(), self.num_items(), len(self.events), self.num_rel)
