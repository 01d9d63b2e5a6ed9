"""Define utils for data: dataset loaders, seed lists and the per-iteration log. """

import logging
import os

import numpy as np
import pandas as pd

from core.dataset import Dataset, ContactDataset, KnowledgeDataset, StreamDataset

logger = logging.getLogger(__name__)


def _read_table(path, sep, names):
    return pd.read_csv(path, sep=sep, header=None, names=names, usecols=range(len(names)),
                       dtype={names[0]: str, names[1]: str}, comment='#', skip_blank_lines=True,
                       engine='python')


def load_general_dataset(path, sep='\t', threshold=0.5, use_ratings=True):
    """Load a `user<sep>item<sep>rating` file.

    Args:
        use_ratings: bool, False binarises ratings with `threshold`
    Return:
        Dataset
    """
    print('loading ratings from {}'.format(path))
    df = _read_table(path, sep, ['user', 'item', 'rating'])
    if not use_ratings:
        df['rating'] = (df['rating'] >= threshold).astype(float)
        threshold = 0.5
    df = df.drop_duplicates(subset=['user', 'item'], keep='last')
    return Dataset.from_triplets(list(df.itertuples(index=False, name=None)), threshold=threshold)


def load_contact_dataset(path, sep='\t', directed=True, not_reciprocal=False):
    """Load an edge list `u<sep>v`. """
    print('loading edges from {}'.format(path))
    df = _read_table(path, sep, ['u', 'v'])
    df = df[df['u'] != df['v']].drop_duplicates()
    return ContactDataset.from_edges(list(df.itertuples(index=False, name=None)), directed=directed,
                                     not_reciprocal=not_reciprocal)


def load_knowledge_dataset(path, sep='\t', threshold=0.5):
    """Load a `user<sep>item<sep>rating<sep>known` file, known in {0, 1}. """
    print('loading ratings with knowledge from {}'.format(path))
    df = _read_table(path, sep, ['user', 'item', 'rating', 'known'])
    df['known'] = df['known'].astype(int) > 0
    df = df.drop_duplicates(subset=['user', 'item'], keep='last')
    return KnowledgeDataset.from_quadruplets(list(df.itertuples(index=False, name=None)), threshold=threshold)


def load_stream_dataset(path, sep='\t', threshold=0.5):
    """Load a replay log: `user<sep>item<sep>rating[<sep>candidate...]` per line, in order.

    Lines with fewer than three fields are skipped.
    """
    print('loading stream from {}'.format(path))
    records = []
    with open(path, 'r') as f:
        for line in f:
            fields = line.rstrip('\n').split(sep)
            if len(fields) < 3:
                continue
            records.append((fields[0], fields[1], float(fields[2]), fields[3:]))
    return StreamDataset.from_records(records, threshold=threshold)


def load_pairs(path, dataset, sep='\t'):
    """Load the (user, item) pairs of a warm-up split, as index pairs of `dataset`.

    Pairs with unknown users or items are dropped.
    """
    print('loading warm-up pairs from {}'.format(path))
    df = _read_table(path, sep, ['user', 'item'])
    pairs = []
    skipped = 0
    for u, i in df.itertuples(index=False, name=None):
        if u in dataset.uid2index and i in dataset.iid2index:
            pairs.append((dataset.user2uidx(u), dataset.item2iidx(i)))
        else:
            skipped += 1
    if skipped > 0:
        logger.warning('Skipped %d warm-up pairs with unknown users or items', skipped)
    return pairs


def generate_seed_list(path, n, master_seed=0):
    """Generate `n` run seeds from `master_seed` and store them, one per line. """
    rng = np.random.default_rng(master_seed)
    seeds = rng.integers(0, 2 ** 31 - 1, size=n).tolist()
    with open(path, 'w') as f:
        for seed in seeds:
            f.write('{}\n'.format(seed))
    return seeds


def read_seed_list(path):
    with open(path, 'r') as f:
        return [int(line) for line in f if line.strip()]


def configure_seeds(path, n, master_seed=0):
    """Read the seed list if it exists and is long enough; otherwise generate it. """
    if os.path.exists(path):
        seeds = read_seed_list(path)
        if len(seeds) >= n:
            return seeds
    return generate_seed_list(path, n, master_seed)


def spawn_seeds(seed, n):
    """Derive `n` independent seeds from a run seed, one per random stream of the run. """
    return [int(child.generate_state(1)[0]) for child in np.random.SeedSequence(seed).spawn(n)]


def _starts_with(fields, iteration):
    try:
        return int(fields[0]) == iteration
    except ValueError:
        return False


def read_previous_iterations(path, num_metrics, cutoff=1):
    """Read the decisions recorded in an iteration log.

    Every line holds `iter, uidx, iidx, <num_metrics metrics>, time`; lines of the same
    iteration are grouped into one decision. Reading stops at the first malformed line,
    and the decision it belongs to is dropped. The last decision is also dropped when it
    holds fewer than `cutoff` items: the log may have been cut while it was written, and
    running that iteration again gives the same result as replaying it.

    Return:
        decisions: list of (iteration, uidx, [iidx, ...], time)
    """
    num_cols = 4 + num_metrics
    decisions = []
    current = None
    with open(path, 'r') as f:
        header = f.readline()
        if len(header.rstrip('\n').split('\t')) != num_cols:
            logger.warning('Unexpected header in %s, nothing to resume', path)
            return []
        for line in f:
            fields = line.rstrip('\n').split('\t')
            try:
                if len(fields) < num_cols:
                    raise ValueError('short line')
                iteration, uidx, iidx = int(fields[0]), int(fields[1]), int(fields[2])
                elapsed = int(fields[-1])
            except (ValueError, IndexError):
                logger.warning('Malformed line in %s; resuming from there', path)
                if current is not None and _starts_with(fields, current[0]):
                    current = None
                break
            if current is not None and current[0] == iteration:
                current[2].append(iidx)
            else:
                if current is not None:
                    decisions.append(current)
                current = (iteration, uidx, [iidx], elapsed)
    if current is not None:
        if len(current[2]) >= cutoff:
            decisions.append(current)
        else:
            logger.warning('Iteration %d in %s is incomplete; it will be run again', current[0], path)
    return decisions


class IterationWriter(object):
    def __init__(self, path, metric_names, interval=1):
        """Write one line per recommended item; every `interval` iterations the file is flushed.

        The file is rewritten from scratch, so resumed decisions must be written again.
        """
        self.path = path
        self.metric_names = list(metric_names)
        self.interval = max(1, interval)

    def __enter__(self):
        self.f = open(self.path, 'w')
        self.f.write('\t'.join(['iter', 'uidx', 'iidx'] + self.metric_names + ['time']) + '\n')
        return self

    def write(self, iteration, uidx, iidxs, metrics, elapsed):
        values = ['{:.6f}'.format(metrics[name]) for name in self.metric_names]
        prefix = '{}\t{}\t'.format(iteration, uidx)
        suffix = '\t'.join(values + [str(elapsed)])
        # an iteration is written whole
        lines = ['{}{}\t{}\n'.format(prefix, iidx, suffix) for iidx in iidxs]
        self.f.write(''.join(lines))
        if iteration % self.interval == 0:
            self.f.flush()

    def __exit__(self, exc_type, exc, tb):
        self.f.close()
        return False
