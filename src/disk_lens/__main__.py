"""Allow ``python -m disk_lens``."""

from disk_lens import main

if __name__ == "__main__":
    main()
