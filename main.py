from wordchain import run_cli
import sys

if __name__ == '__main__':
    sys.exit(run_cli(sys.argv[1:]))
