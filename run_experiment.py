"""Run experiment. """

import json
import logging
import os

from algorithms.basic import PopularityRecommender, AverageRatingRecommender
from algorithms.epsilon_greedy import EpsilonGreedy, EpsilonTGreedy, get_update_function
from algorithms.item_bandit import ItemBanditRecommender
from algorithms.linucb import LinUCBPMF, GLMUCBPMF
from algorithms.mle import PopularityMLE, AverageRatingMLE
from algorithms.pmf_greedy import EpsilonGreedyPMF
from algorithms.pmf_thompson import ThompsonSamplingPMF
from algorithms.thompson_sampling import ThompsonSampling, DelayedThompsonSampling
from algorithms.ucb import UCB1, UCB1Tuned
from algorithms.uniform_random import UniformRandom
from algorithms.user_knn import InteractiveUserBasedKNN
from configs.params import parse_args
from core.contextual_bandit import run_recommendation_loop
from core.dataset import KnowledgeDataUse
from core.end_condition import NoLimitsEndCondition, NumIterEndCondition, PercentagePositiveRatingsEndCondition
from core.runner import RecommendationLoop
from core.selection import NonSequentialSelection, SequentialSelection, USER_SELECTORS
from core.update import GeneralUpdate, ContactUpdate, WithKnowledgeUpdate, ReplayerUpdate
from core.warmup import Warmup, ContactWarmup, WarmupType
from utils.data_util import (load_general_dataset, load_contact_dataset, load_knowledge_dataset,
                             load_stream_dataset, load_pairs, configure_seeds, spawn_seeds)
from utils.metrics import METRICS, CumulativeRecall


def build_dataset(args):
    if args.dataset_type == 'general':
        return load_general_dataset(args.data_path, args.sep, args.threshold, args.use_ratings)
    elif args.dataset_type == 'contact':
        return load_contact_dataset(args.data_path, args.sep, args.directed, args.not_reciprocal)
    elif args.dataset_type == 'knowledge':
        return load_knowledge_dataset(args.data_path, args.sep, args.threshold)
    elif args.dataset_type == 'stream':
        return load_stream_dataset(args.data_path, args.sep, args.threshold)
    else:
        raise NotImplementedError


def build_warmup(args, dataset):
    if args.warmup_path is None:
        return None
    if args.dataset_type == 'stream':
        raise ValueError('Replay logs do not support a warm-up')
    pairs = load_pairs(args.warmup_path, dataset, args.sep)
    warmup_type = WarmupType.from_string(args.warmup_type)
    if args.dataset_type == 'contact':
        return ContactWarmup.load(dataset, pairs, warmup_type)
    return Warmup.load(dataset, pairs, warmup_type)


def build_learner(args, dataset, seed, bandit_seed=None):
    """Construct the learner named by `args.algo`.

    Beta and MLE bandits learn from Bernoulli rewards: the dataset relevance test of each disclosed value.
    """
    if bandit_seed is None:
        bandit_seed = spawn_seeds(seed, 1)[0]
    num_users, num_items = dataset.num_users(), dataset.num_items()
    common = dict(ignore_not_rated=args.ignore_not_rated, not_rated=args.not_rated, rng_seed=seed)
    pmf = dict(k=args.k, stdev_p=args.stdev_p, stdev_q=args.stdev_q, stdev=args.stdev, num_iter=args.als_iter,
               device=args.device, **common)
    relevance = None

    if args.algo == 'random':
        return UniformRandom(num_users, num_items, rng_seed=seed)
    # ----------------------------- Non-bandit baselines ----------------------------------#
    elif args.algo == 'popularity':
        return PopularityRecommender(num_users, num_items, dataset.is_relevant, name=args.algo, **common)
    elif args.algo == 'average':
        return AverageRatingRecommender(num_users, num_items, name=args.algo, **common)
    elif args.algo == 'userknn':
        return InteractiveUserBasedKNN(num_users, num_items, k=args.neighbours, alpha=args.sim_alpha,
                                       beta=args.sim_beta, ignore_zeros=args.ignore_zeros, name=args.algo, **common)
    # ----------------------------- Item bandits ----------------------------------#
    elif args.algo == 'ucb1':
        bandit = UCB1(num_items, alpha=args.alpha, rng_seed=bandit_seed)
    elif args.algo == 'ucb1tuned':
        bandit = UCB1Tuned(num_items, rng_seed=bandit_seed)
    elif args.algo == 'egreedy':
        bandit = EpsilonGreedy(num_items, args.epsilon, get_update_function(args.update_func, args.step),
                               rng_seed=bandit_seed)
    elif args.algo == 'etgreedy':
        bandit = EpsilonTGreedy(num_items, args.alpha, get_update_function(args.update_func, args.step),
                                rng_seed=bandit_seed)
    elif args.algo == 'thompson':
        bandit = ThompsonSampling(num_items, args.alpha, args.beta, rng_seed=bandit_seed)
        relevance = dataset.is_relevant
    elif args.algo == 'delayedthompson':
        bandit = DelayedThompsonSampling(num_items, args.alpha, args.beta, args.delay, rng_seed=bandit_seed)
        relevance = dataset.is_relevant
    elif args.algo == 'mlepopularity':
        bandit = PopularityMLE(num_items, args.alpha, rng_seed=bandit_seed)
        relevance = dataset.is_relevant
    elif args.algo == 'mleaverage':
        bandit = AverageRatingMLE(num_items, args.alpha, args.beta, rng_seed=bandit_seed)
        relevance = dataset.is_relevant
    # ----------------------------- PMF bandits ----------------------------------#
    elif args.algo == 'pmf_egreedy':
        return EpsilonGreedyPMF(num_users, num_items, epsilon=args.epsilon, **pmf)
    elif args.algo == 'pmf_linucb':
        return LinUCBPMF(num_users, num_items, alpha=args.alpha, **pmf)
    elif args.algo == 'pmf_glmucb':
        return GLMUCBPMF(num_users, num_items, alpha=args.alpha, **pmf)
    elif args.algo == 'pmf_thompson':
        return ThompsonSamplingPMF(num_users, num_items, **pmf)
    else:
        raise NotImplementedError
    return ItemBanditRecommender(num_users, num_items, bandit, relevance=relevance, name=args.algo, **common)


def build_loop(args, dataset, learner, seed, warmup=None):
    metric_names = [m.strip() for m in args.metrics.split(',') if m.strip()]
    metrics = {}
    for name in metric_names:
        if name not in METRICS:
            raise NotImplementedError('Unknown metric: {}'.format(name))
        metrics[name] = METRICS[name]() if name == 'gini' else METRICS[name](threshold=dataset.threshold)
    num_rel = dataset.num_rel

    if args.dataset_type == 'stream':
        selection, update = SequentialSelection(), ReplayerUpdate()
    else:
        if args.user_selector not in USER_SELECTORS:
            raise NotImplementedError('Unknown user selector: {}'.format(args.user_selector))
        selection = NonSequentialSelection(USER_SELECTORS[args.user_selector]())
        if args.dataset_type == 'contact':
            update = ContactUpdate(args.not_reciprocal)
        elif args.dataset_type == 'knowledge':
            data_use = KnowledgeDataUse.from_string(args.knowledge)
            update = WithKnowledgeUpdate(data_use)
            num_rel = dataset.subset_num_rel(data_use)
            if 'recall' in metrics:
                metrics['recall'] = CumulativeRecall(dataset.threshold, num_rel=num_rel)
        else:
            update = GeneralUpdate()

    if args.end_condition == 'nolimit':
        end_condition = NoLimitsEndCondition()
    elif args.end_condition == 'numiter':
        end_condition = NumIterEndCondition(args.num_iter)
    elif args.end_condition == 'percentage':
        remaining = num_rel - (warmup.num_rel if warmup is not None else 0)
        end_condition = PercentagePositiveRatingsEndCondition(remaining, args.percentage, dataset.threshold)
    else:
        raise NotImplementedError

    return RecommendationLoop(dataset, learner, selection, update, metrics, end_condition, rng_seed=seed,
                              cutoff=args.cutoff)


def main(argv=None):
    logging.basicConfig(level=logging.INFO, format='%(asctime)s %(levelname)s %(name)s: %(message)s')
    args = parse_args(argv)
    os.makedirs(args.result_path, exist_ok=True)

    dataset = build_dataset(args)
    print(dataset)
    warmup = build_warmup(args, dataset)

    if args.algo_prefix == 'algo':
        args.algo_prefix = args.algo + '-cutoff' + str(args.cutoff) + '-' + args.end_condition
    print('Debug args.algo_prefix: ', args.algo_prefix)

    args_save_path = os.path.join(args.result_path, args.algo_prefix + '.json')
    with open(args_save_path, 'wt') as f:
        json.dump(vars(args), f, indent=4)

    seed_path = args.seed_path if args.seed_path is not None else os.path.join(args.result_path, 'rngseedlist')
    seeds = configure_seeds(seed_path, args.n_trials, args.master_seed)

    trials = [args.trial] if args.trial >= 0 else range(args.n_trials)
    for e in trials:
        print('trial = {}'.format(e))
        loop_seed, learner_seed, bandit_seed = spawn_seeds(seeds[e % len(seeds)], 3)
        learner = build_learner(args, dataset, learner_seed, bandit_seed)
        loop = build_loop(args, dataset, learner, loop_seed, warmup)
        output_path = os.path.join(args.result_path, '{}-{}.txt'.format(e, args.algo_prefix))
        run_recommendation_loop(args, loop, output_path, warmup)


if __name__ == '__main__':
    main()
