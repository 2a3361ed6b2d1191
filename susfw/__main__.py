# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Yannick Locque (yanuino)

"""Entry point for running the CLI as a module.

Usage:
    python -m susfw -m <model> -r <region> <command> ...
"""

import sys

from susfw.main import main

if __name__ == "__main__":
    sys.exit(main())
