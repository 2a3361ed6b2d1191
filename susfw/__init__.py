# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Yannick Locque (yanuino)

"""Command-line front end for the FUS firmware client.

Example:
    Check, list, download and decrypt::

        python -m susfw -m SM-S928B -r EUX checkupdate
        python -m susfw -m SM-S928B -r EUX list -l
        python -m susfw -m SM-S928B -r EUX -i 35297624 download -O ./fw
        python -m susfw -m SM-S928B -r EUX -i 352976245060954 decrypt -v <ver> -I fw.zip.enc4 -o fw.zip
"""

from susfw.main import SusfwApp, main

__all__ = ["SusfwApp", "main"]
