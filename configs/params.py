import argparse
import logging


def str2bool(v):
    if isinstance(v, bool):
        return v
    if v.lower() in ('yes', 'true', 't', 'y', '1'):
        return True
    if v.lower() in ('no', 'false', 'f', 'n', '0'):
        return False
    raise argparse.ArgumentTypeError('Boolean value expected.')


def parse_args(argv=None):
    parser = argparse.ArgumentParser()

    # Data
    parser.add_argument("--data_path", type=str, default="./data/ratings.txt")
    parser.add_argument("--dataset_type", type=str, default='general', help='general/contact/knowledge/stream')
    parser.add_argument("--sep", type=str, default='\t')
    parser.add_argument("--threshold", type=float, default=0.5, help='ratings >= threshold are relevant')
    parser.add_argument("--use_ratings", type=str2bool, default=True, help='False binarises ratings with threshold')
    parser.add_argument("--directed", type=str2bool, default=True, help='contact datasets only')
    parser.add_argument("--not_reciprocal", type=str2bool, default=False, help='contact datasets only')
    parser.add_argument("--knowledge", type=str, default='all', help='known/unknown/all, knowledge datasets only')

    # Warm-up
    parser.add_argument("--warmup_path", type=str, default=None, help='file with (user, item) pairs')
    parser.add_argument("--warmup_type", type=str, default='onlyratings', help='onlyratings/full')

    # Loop
    parser.add_argument("--user_selector", type=str, default='random', help='random/roundrobin/randomroundrobin')
    parser.add_argument("--cutoff", type=int, default=1, help='number of items recommended per iteration')
    parser.add_argument("--end_condition", type=str, default='nolimit', help='nolimit/numiter/percentage')
    parser.add_argument("--num_iter", type=int, default=0, help='limit of the numiter end condition')
    parser.add_argument("--percentage", type=float, default=1.0, help='limit of the percentage end condition')
    parser.add_argument("--metrics", type=str, default='recall,gini')

    # Algorithm
    parser.add_argument("--algo", type=str, default='ucb1')
    parser.add_argument("--algo_prefix", type=str, default='algo')
    parser.add_argument("--alpha", type=float, default=2.0, help='exploration weight (ucb, epsilon-t, linucb) or prior hits')
    parser.add_argument("--beta", type=float, default=1.0, help='prior misses')
    parser.add_argument("--epsilon", type=float, default=0.1)
    parser.add_argument("--update_func", type=str, default='stationary', help='stationary/nonstationary/useall/count')
    parser.add_argument("--step", type=float, default=0.1, help='step of the nonstationary update function')
    parser.add_argument("--delay", type=int, default=10, help='delayed thompson sampling')
    parser.add_argument("--k", type=int, default=10, help='number of latent factors')
    parser.add_argument("--stdev_p", type=float, default=1.0)
    parser.add_argument("--stdev_q", type=float, default=1.0)
    parser.add_argument("--stdev", type=float, default=1.0)
    parser.add_argument("--als_iter", type=int, default=10, help='ALS sweeps over the warm-up')
    parser.add_argument("--neighbours", type=int, default=10, help='user knn, 0 uses every user')
    parser.add_argument("--sim_alpha", type=float, default=1.0, help='user knn, prior of the Beta similarity')
    parser.add_argument("--sim_beta", type=float, default=1.0, help='user knn, prior of the Beta similarity')
    parser.add_argument("--ignore_zeros", type=str2bool, default=True, help='user knn, skip non-positive item scores')
    parser.add_argument("--ignore_not_rated", type=str2bool, default=True)
    parser.add_argument("--not_rated", type=float, default=0.0)
    parser.add_argument("--device", type=str, default='cpu')

    # Runs
    parser.add_argument("--n_trials", type=int, default=1, help='number of experiment runs')
    parser.add_argument("--trial", type=int, default=-1, help='run only this trial')
    parser.add_argument("--master_seed", type=int, default=2022)
    parser.add_argument("--seed_path", type=str, default=None, help='defaults to <result_path>/rngseedlist')
    parser.add_argument("--result_path", type=str, default="./results")
    parser.add_argument("--resume", type=str2bool, default=False)
    parser.add_argument("--interval", type=int, default=1000, help='flush the output every interval iterations')

    args = parser.parse_args(args=argv)

    logging.info(args)
    return args


if __name__ == "__main__":
    args = parse_args()
