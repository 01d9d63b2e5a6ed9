"""Per-user bookkeeping of the items that can still be recommended in a run. """

from collections import OrderedDict

from core.dataset import ContactDataset


class Availability(object):
    def __init__(self, available=None):
        """
        Args:
            available: dict, key: uidx, value: iterable of iidx still eligible for uidx
        """
        self.available = OrderedDict()
        if available is not None:
            for uidx, items in available.items():
                self.available[uidx] = dict.fromkeys(items)

    @classmethod
    def full(cls, users, num_items, exclude_self=False):
        """Every item is available for every user in `users` (optionally except the user itself). """
        available = OrderedDict()
        for uidx in users:
            available[uidx] = [iidx for iidx in range(num_items) if not (exclude_self and iidx == uidx)]
        return cls(available)

    @classmethod
    def from_dataset(cls, dataset):
        return cls.full(range(dataset.num_users()), dataset.num_items(),
                        exclude_self=isinstance(dataset, ContactDataset))

    def copy(self):
        return Availability(self.available)

    def restrict(self, users):
        """Return a copy limited to `users`, dropping users left without items. """
        kept = OrderedDict()
        for uidx in users:
            items = self.available.get(uidx)
            if items:
                kept[uidx] = items
        return Availability(kept)

    def is_available(self, uidx, iidx):
        items = self.available.get(uidx)
        return items is not None and iidx in items

    def remove(self, uidx, iidx):
        """Remove iidx from uidx's available items.

        Return:
            removed: bool, False if the item was not available.
        """
        items = self.available.get(uidx)
        if items is None or iidx not in items:
            return False
        del items[iidx]
        return True

    def candidates(self, uidx):
        return list(self.available.get(uidx, ()))

    def num_available(self, uidx):
        return len(self.available.get(uidx, ()))

    def users(self):
        return [uidx for uidx, items in self.available.items() if len(items) > 0]

    def __contains__(self, uidx):
        return uidx in self.available

    def __len__(self):
        return len(self.available)
