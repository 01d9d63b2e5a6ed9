"""Run many independent experiments in parallel, one process per (algorithm, trial). """

import argparse
import os
import shlex
import subprocess
import sys
import time

from utils.data_util import configure_seeds


def multi_process_launcher(commands, max_procs):
    """
    Launch commands on the local machine, at most `max_procs` at a time.

    Return:
        failed: list of commands that exited with a non-zero code
    """
    procs = [None] * max_procs
    launched = {}
    commands = list(commands)

    while len(commands) > 0:
        for i, proc in enumerate(procs):
            if (proc is None) or (proc.poll() is not None):
                # Nothing is running on this index; launch a command.
                cmd = commands.pop(0)
                new_proc = subprocess.Popen(cmd)
                procs[i] = new_proc
                launched[new_proc] = cmd
                print("running ", ' '.join(cmd))
                break
        time.sleep(1)

    # Wait for the last few tasks to finish before returning
    for p in procs:
        if p is not None:
            p.wait()
    return [cmd for p, cmd in launched.items() if p.returncode != 0]


def create_commands(args, extra):
    commands = []
    algos = [a.strip() for a in args.algos.split(',') if a.strip()]
    for algo in algos:
        for trial in range(args.n_trials):
            commands.append([sys.executable, 'run_experiment.py', '--algo', algo, '--trial', str(trial),
                             '--n_trials', str(args.n_trials), '--seed_path', args.seed_path,
                             '--result_path', args.result_path] + extra)
    return commands


def run_exps(argv=None):
    parser = argparse.ArgumentParser()
    parser.add_argument("--algos", type=str, default='random,ucb1,thompson,pmf_linucb')
    parser.add_argument("--n_trials", type=int, default=5)
    parser.add_argument("--max_procs", type=int, default=4)
    parser.add_argument("--master_seed", type=int, default=2022)
    parser.add_argument("--result_path", type=str, default="./results")
    parser.add_argument("--seed_path", type=str, default=None)
    args, extra = parser.parse_known_args(argv)

    os.makedirs(args.result_path, exist_ok=True)
    if args.seed_path is None:
        args.seed_path = os.path.join(args.result_path, 'rngseedlist')
    # generated once here so that concurrent runs read the same seeds
    configure_seeds(args.seed_path, args.n_trials, args.master_seed)

    commands = create_commands(args, extra)
    print('{} commands, {} at a time'.format(len(commands), args.max_procs))
    failed = multi_process_launcher(commands, max(1, args.max_procs))
    for cmd in failed:
        print('FAILED: {}'.format(' '.join(shlex.quote(c) for c in cmd)))
    return failed


if __name__ == '__main__':
    run_exps()
