#!/usr/bin/env python3
"""
otp_cli.py — command line wrapper around otp_generator.

Subcommands:
- hotp   : HOTP code for a counter
- totp   : TOTP code for now / a given time (or a live view with --watch)
- uri    : print the otpauth:// URI for a HOTP or TOTP configuration
- parse  : decode an otpauth:// URI and show its settings
- verify : check a HOTP / TOTP code

Examples:
    otp-generator hotp --secret 12345678901234567890 --counter 1
    otp-generator totp --secret GEZDGNBVGY3TQOJQGEZDGNBVGY3TQOJQ --base32 --digits 8
    otp-generator uri totp --secret s3cret --issuer MyService --account alice@example
    otp-generator parse "otpauth://hotp/MyService?secret=s3cret&counter=0"
    otp-generator verify totp --secret s3cret --code 123456 --window 1
"""

import argparse
import logging
import sys
import time

from .encoding import decode_secret
from .errors import OTPError
from .generators import hotp_generator, parse_uri, totp_generator
from .otp_core import DEFAULT_DIGITS, DEFAULT_TIME_STEP, HMACAlgorithm
from .otp_uri import parse_otpauth_uri

logger = logging.getLogger(__name__)


def _secret(args) -> bytes:
    return decode_secret(args.secret, base32=args.base32)


def _hotp(args):
    return hotp_generator(_secret(args), args.digits, args.algorithm)


def _totp(args):
    return totp_generator(_secret(args), args.digits, args.period, args.algorithm)


# --- CLI command handlers ---
def cmd_help(args):
    print("'otp-generator -h' for help.")


def cmd_hotp(args):
    code = _hotp(args).generate(args.counter)
    print(f"HOTP({args.digits}d, counter={args.counter}): {code}")


def cmd_totp(args):
    generator = _totp(args)
    if not args.watch:
        code = generator.generate(args.time)
        remaining = generator.remaining_seconds(args.time)
        print(f"TOTP ({args.digits}d): {code}  (valid ~{remaining:2d}s)")
        return

    print(f"Press Ctrl+C to quit. Generating {args.digits}-digit TOTP every "
          f"{int(generator.period.total_seconds())}s...\n")
    last_code = None
    try:
        while True:
            code = generator.generate()
            remaining = generator.remaining_seconds()
            if code != last_code:
                print(f"TOTP ({args.digits}d): {code}  (valid ~{remaining:2d}s)")
                last_code = code
            else:
                print(f".. {remaining:2d}s left", end='\r', flush=True)
            time.sleep(1)
    except KeyboardInterrupt:
        print("\nBye.")


def cmd_uri_hotp(args):
    print(_hotp(args).get_uri(args.counter, args.issuer, args.account))


def cmd_uri_totp(args):
    print(_totp(args).get_uri(args.issuer, args.account))


def cmd_parse(args):
    record = parse_otpauth_uri(args.uri)
    print(f"type:      {record.otp_type}")
    print(f"issuer:    {record.issuer}")
    print(f"account:   {record.account}")
    print(f"algorithm: {record.algorithm.name}")
    print(f"digits:    {record.digits}")
    if record.counter is not None:
        print(f"counter:   {record.counter}")
    else:
        print(f"period:    {int(record.period.total_seconds())}s")
    if args.code:
        generator = parse_uri(args.uri)
        if record.counter is not None:
            print(f"code:      {generator.generate(record.counter)}")
        else:
            print(f"code:      {generator.generate()}")


def cmd_verify_hotp(args):
    if _hotp(args).verify(args.code, args.counter, args.window):
        print("[+] HOTP code is VALID")
        return 0
    print("[-] HOTP code is INVALID")
    return 2


def cmd_verify_totp(args):
    if _totp(args).verify(args.code, args.window, args.time):
        print("[+] TOTP code is VALID")
        return 0
    print("[-] TOTP code is INVALID")
    return 2


# --- Argparse builder ---
def _algorithm(value: str) -> HMACAlgorithm:
    try:
        return HMACAlgorithm.from_name(value)
    except OTPError as e:
        raise argparse.ArgumentTypeError(str(e))


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="otp-generator",
                                description="HOTP/TOTP generator and otpauth URI tool")
    p.add_argument("--verbose", action="store_true", help="Verbose output")
    p.set_defaults(func=cmd_help)
    sub = p.add_subparsers(dest="cmd")

    # shared options
    secret = argparse.ArgumentParser(add_help=False)
    secret.add_argument("--secret", required=True, help="Shared secret (text, or Base32 with --base32)")
    secret.add_argument("--base32", action="store_true", help="Decode --secret as Base32")
    secret.add_argument("--digits", type=int, default=DEFAULT_DIGITS, help="Number of OTP digits (6-8)")
    secret.add_argument("--algorithm", type=_algorithm, default=HMACAlgorithm.SHA1,
                        help="SHA1, SHA256 or SHA512")
    period = argparse.ArgumentParser(add_help=False)
    period.add_argument("--period", type=int, default=DEFAULT_TIME_STEP, help="TOTP time step (seconds)")
    label = argparse.ArgumentParser(add_help=False)
    label.add_argument("--issuer", default="otp-tool", help="Issuer label for otpauth URI")
    label.add_argument("--account", default="", help="Account label for otpauth URI")

    # hotp
    ph = sub.add_parser("hotp", parents=[secret], help="Generate HOTP code for a specific counter")
    ph.add_argument("--counter", type=int, required=True)
    ph.set_defaults(func=cmd_hotp)

    # totp
    pt = sub.add_parser("totp", parents=[secret, period], help="Generate TOTP code")
    pt.add_argument("--time", type=int, help="Epoch seconds (default: now)")
    pt.add_argument("--watch", action="store_true", help="Show TOTP code in real time")
    pt.set_defaults(func=cmd_totp)

    # uri
    pu = sub.add_parser("uri", help="Print otpauth URI")
    sub_u = pu.add_subparsers(dest="uri_type")
    puh = sub_u.add_parser("hotp", parents=[secret, label], help="HOTP URI")
    puh.add_argument("--counter", type=int, default=0)
    puh.set_defaults(func=cmd_uri_hotp)
    put = sub_u.add_parser("totp", parents=[secret, period, label], help="TOTP URI")
    put.set_defaults(func=cmd_uri_totp)

    # parse
    pp = sub.add_parser("parse", help="Decode an otpauth URI")
    pp.add_argument("uri")
    pp.add_argument("--code", action="store_true", help="Also print the code it generates")
    pp.set_defaults(func=cmd_parse)

    # verify
    pv = sub.add_parser("verify", help="Verify an OTP code (TOTP or HOTP)")
    sub_v = pv.add_subparsers(dest="verify_type")

    pvh = sub_v.add_parser("hotp", parents=[secret], help="Verify a HOTP code")
    pvh.add_argument("--code", required=True, help="OTP code to verify")
    pvh.add_argument("--counter", type=int, required=True, help="Current HOTP counter")
    pvh.add_argument("--window", type=int, default=0, help="Allowed counter look-ahead")
    pvh.set_defaults(func=cmd_verify_hotp)

    pvt = sub_v.add_parser("totp", parents=[secret, period], help="Verify a TOTP code")
    pvt.add_argument("--code", required=True, help="OTP code to verify")
    pvt.add_argument("--time", type=int, help="Epoch seconds (default: now)")
    pvt.add_argument("--window", type=int, default=0, help="Allowed look-ahead in time steps")
    pvt.set_defaults(func=cmd_verify_totp)

    return p


def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="[+] %(message)s")
    try:
        return args.func(args) or 0
    except OTPError as e:
        logger.debug("Command failed", exc_info=True)
        print(f"[!] {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
