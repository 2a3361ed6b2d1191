# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Yannick Locque (yanuino)

"""susfw command-line application.

Parses arguments and dispatches to checkupdate, list, download or decrypt.
"""

from __future__ import annotations

import argparse
import logging
import os
import sys
from pathlib import Path
from typing import Optional, Sequence

from fusproto.decrypt import decrypt_file, get_key
from fusproto.deviceid import resolve_device_id
from fusproto.errors import FUSError
from fusproto.firmware import get_latest_version, get_version_info
from transfer.service import fetch_firmware

from .config import load_config

VERSION = "1.0.0"
GIB = 1024 * 1024 * 1024

logger = logging.getLogger("susfw")


class SusfwApp:
    """
    CLI application class.

    Parses arguments and dispatches to checkupdate, list, download or decrypt.
    """

    def __init__(self) -> None:
        self.parser = argparse.ArgumentParser(
            prog="susfw", description="Samsung firmware downloader"
        )
        self._setup_args()

    def _setup_args(self) -> None:
        """Define command-line arguments and subcommands."""
        p = self.parser
        p.add_argument("-m", "--dev-model", required=True, help="device model (e.g. SM-S928B)")
        p.add_argument("-r", "--dev-region", required=True, help="device region code (e.g. EUX)")
        p.add_argument("-i", "--dev-imei", default="", help="device IMEI (15 digits) or TAC (8 digits)")
        p.add_argument("-s", "--dev-serial", default="", help="device serial number")
        p.add_argument("--config", type=Path, help="TOML config file (default: ./susfw.toml)")
        p.add_argument("--verbose", action="store_true", help="debug logging")
        p.add_argument("--version", action="version", version=f"susfw {VERSION}")

        subs = p.add_subparsers(dest="command", required=True)
        subs.add_parser("checkupdate", help="print latest available firmware version")

        ls = subs.add_parser("list", help="list available firmware versions")
        ls.add_argument("-l", "--latest", action="store_true", help="show only latest version")
        ls.add_argument("-q", "--quiet", action="store_true", help="print versions only")

        dl = subs.add_parser("download", help="download & decrypt firmware")
        dl.add_argument("-v", "--fw-ver", help="firmware version (default: latest)")
        out = dl.add_mutually_exclusive_group()
        out.add_argument("-O", "--out-dir", help="output directory")
        out.add_argument("-o", "--out-file", help="output file")
        dl.add_argument("-M", "--show-md5", action="store_true", help="print server MD5")
        dl.add_argument("--no-decrypt", action="store_true", help="skip decrypt after download")

        dec = subs.add_parser("decrypt", help="decrypt an encrypted firmware file")
        dec.add_argument("-v", "--fw-ver", required=True, help="firmware version")
        dec.add_argument("-I", "--in-file", required=True, help="input .enc2/.enc4 file")
        dec.add_argument("-o", "--out-file", required=True, help="output file (skipped if it exists)")
        dec.add_argument(
            "-V", "--enc-ver", type=int, choices=[2, 4], default=4, help="encryption version"
        )

    def run(self, argv: Optional[Sequence[str]] = None) -> int:
        """
        Parse args and invoke the selected command.

        Returns:
            Exit code (0 on success, 1 on failure).
        """
        args = self.parser.parse_args(argv)
        cfg = load_config(args.config)
        logging.getLogger().setLevel(logging.DEBUG if args.verbose else cfg.log_level)

        handler = getattr(self, "cmd_" + args.command)
        try:
            return handler(args, cfg)
        except (FUSError, OSError) as ex:
            logger.error("%s", ex)
            return 1

    def _device_id(self, args: argparse.Namespace) -> str:
        return resolve_device_id(args.dev_imei, args.dev_serial, args.dev_model, args.dev_region)

    def cmd_checkupdate(self, args: argparse.Namespace, _cfg) -> int:
        print(get_latest_version(args.dev_model, args.dev_region))
        return 0

    def cmd_list(self, args: argparse.Namespace, _cfg) -> int:
        info = get_version_info(args.dev_model, args.dev_region)
        latest = info.latest.version if info.latest else ""
        if args.quiet:
            print(latest)
            if not args.latest:
                for u in info.upgrades:
                    print(u.version)
            return 0

        print(f"Model: {args.dev_model}  Region: {args.dev_region}\n")
        print("Latest:")
        print(f"  {latest}")
        if not args.latest and info.upgrades:
            print("\nAvailable Upgrades:")
            for u in info.upgrades:
                size = f" ({u.size / GIB:.2f} GB)" if u.size > 0 else ""
                print(f"  {u.version}{size}")
        return 0

    def cmd_download(self, args: argparse.Namespace, cfg) -> int:
        device_id = self._device_id(args)
        result = fetch_firmware(
            args.dev_model,
            args.dev_region,
            device_id,
            args.fw_ver,
            out_dir=args.out_dir or cfg.out_dir or None,
            out_file=args.out_file,
            auto_decrypt=cfg.auto_decrypt and not args.no_decrypt,
        )
        print(
            f"Device: {args.dev_model} | CSC: {args.dev_region}\n"
            f"FW: {result.version}\n"
            f"Size: {result.info.size_bytes / GIB:.3f} GB\n"
            f"Path: {result.encrypted_path}"
        )
        if result.download is None:
            print("Already decrypted!")
        elif (args.show_md5 or cfg.show_md5) and result.download.md5:
            print(f"MD5: {result.download.md5}")
        if result.decrypted_path:
            print(f"Decrypted: {result.decrypted_path}")
        return 0

    def cmd_decrypt(self, args: argparse.Namespace, _cfg) -> int:
        """Decrypt a local file. An existing output file is left untouched."""
        if os.path.exists(args.out_file):
            print(f"Already decrypted: {args.out_file}")
            return 0
        device_id = self._device_id(args) if args.enc_ver == 4 else ""
        key = get_key(args.enc_ver, args.fw_ver, args.dev_model, args.dev_region, device_id)
        decrypt_file(args.in_file, args.out_file, key=key)
        print("Done.")
        return 0


def main(argv: Optional[Sequence[str]] = None) -> int:
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    return SusfwApp().run(argv)


if __name__ == "__main__":
    sys.exit(main())
