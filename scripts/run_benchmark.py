
from annbench.eval.benchmark import main

if __name__ == "__main__":
    main()
