#!/usr/bin/env python3
"""
otp_cli.py - CLI wrapper for otp_core.py

Subcommands:
- secret : create a new Base32 secret
- code   : show the TOTP code of a secret
- verify : verify a code typed by the user
- uri    : print the otpauth:// URI of a label/secret
- qr-url : print the QR code image URL for Google Authenticator

Nothing is stored: the secret is passed on the command line every time.
"""

import argparse
import logging
import sys

from . import otp_core

logger = logging.getLogger(__name__)


# --- CLI command handlers ---
def cmd_secret(args):
    print(otp_core.create_secret(args.length))
    return 0


def cmd_code(args):
    ga = otp_core.GoogleAuthenticator(args.digits)
    if args.slice is not None:
        time_slice = args.slice
        remaining = None
    else:
        time_slice = ga.get_time_slice(args.timestamp)
        remaining = ga.remaining_seconds(args.timestamp)

    logger.debug("Computing %d-digit code for slice %d", ga.code_length, time_slice)
    code = ga.get_code(args.secret, time_slice)
    if remaining is None:
        print(f"TOTP(slice={time_slice}): {code}")
    else:
        print(f"TOTP: {code}  (valid ~{remaining:2d}s)")
    return 0


def cmd_verify(args):
    ga = otp_core.GoogleAuthenticator(args.digits)
    if ga.verify_code(args.secret, args.code, tolerance=args.tolerance):
        print("[+] TOTP code is VALID")
        return 0
    print("[-] TOTP code is INVALID")
    return 1


def cmd_uri(args):
    print(otp_core.format_otpauth_uri(args.label, args.secret, args.issuer))
    return 0


def cmd_qr_url(args):
    params = {"width": args.width, "height": args.height, "level": args.level}
    print(otp_core.format_qr_code_url(args.label, args.secret, args.issuer, params))
    return 0


def cmd_help(args):
    print("'authenticator -h' for help.")
    return 0


# --- Argparse builder ---
def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="authenticator",
        description="Google Authenticator compatible TOTP (HMAC-SHA1, 30s) tool",
    )
    p.add_argument("--verbose", action="store_true", help="Verbose output")
    sub = p.add_subparsers(dest="cmd")
    p.set_defaults(func=cmd_help)

    # secret
    ps = sub.add_parser("secret", help="Create a new Base32 secret")
    ps.add_argument("--length", type=int, default=otp_core.DEFAULT_SECRET_LENGTH,
                    help="Number of Base32 characters")
    ps.set_defaults(func=cmd_secret)

    # code
    pc = sub.add_parser("code", help="Show the TOTP code of a secret")
    pc.add_argument("--secret", required=True, help="Base32 secret")
    pc.add_argument("--digits", type=int, default=otp_core.DEFAULT_CODE_LENGTH, help="Number of digits")
    when = pc.add_mutually_exclusive_group()
    when.add_argument("--slice", type=int, help="Explicit time slice (Unix time / 30)")
    when.add_argument("--timestamp", type=int, help="Unix time to compute the code at")
    pc.set_defaults(func=cmd_code)

    # verify
    pv = sub.add_parser("verify", help="Verify a TOTP code")
    pv.add_argument("--secret", required=True, help="Base32 secret")
    pv.add_argument("--code", required=True, help="OTP code to verify")
    pv.add_argument("--digits", type=int, default=otp_core.DEFAULT_CODE_LENGTH, help="Number of digits")
    pv.add_argument("--tolerance", type=int, default=otp_core.DEFAULT_TOLERANCE,
                    help="Allowed +/- window in 30s slices")
    pv.set_defaults(func=cmd_verify)

    # uri
    pu = sub.add_parser("uri", help="Print the otpauth URI")
    pu.add_argument("--label", required=True, help='Account label, e.g. "MyApp:alice@example.com"')
    pu.add_argument("--secret", required=True, help="Base32 secret")
    pu.add_argument("--issuer", help="Issuer (must match the label prefix if any)")
    pu.set_defaults(func=cmd_uri)

    # qr-url
    pq = sub.add_parser("qr-url", help="Print the QR code image URL")
    pq.add_argument("--label", required=True, help="Account label")
    pq.add_argument("--secret", required=True, help="Base32 secret")
    pq.add_argument("--issuer", help="Issuer (must match the label prefix if any)")
    pq.add_argument("--width", type=int, default=otp_core.QR_DEFAULT_SIZE)
    pq.add_argument("--height", type=int, default=otp_core.QR_DEFAULT_SIZE)
    pq.add_argument("--level", default=otp_core.QR_DEFAULT_LEVEL, help="L, M, Q or H")
    pq.set_defaults(func=cmd_qr_url)

    return p


def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="[%(levelname)s] %(message)s",
    )
    try:
        return args.func(args)
    except ValueError as e:
        print(f"[!] {e}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    sys.exit(main())
