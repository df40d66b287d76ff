"""Allow running RerunTV with ``python -m reruntv``."""

from reruntv.main import main

main()
