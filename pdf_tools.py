#!/usr/bin/env python3
"""
pdf_tools.py
Command-line front end for the PDF pipelines

Usage:
  pdf-tools pdf overlay --file1 base.pdf --file2 overlay.pdf --output result.pdf
  pdf-tools pdf overlay --file1 a.pdf --file2 b.pdf --output out.pdf --mode concat
  pdf-tools pdf reverse --file scan.pdf --output reversed.pdf
  pdf-tools pdf compress --file big.pdf --output small.pdf [--passes 3]
  pdf-tools deps                                   # show available PDF libraries
"""

import argparse
import sys

from pdf_config import DEFAULT_OVERLAY_MODE, OPTIMIZE_PASSES, OVERLAY_MODES, TEMP_DIR_ENV, RunConfig
from pdf_errors import PdfToolError
from pdf_pipelines import run_compress, run_overlay, run_reverse
from pdf_utils import print_dependencies

__version__ = "0.1.0"


def cmd_overlay(args):
    run_overlay(RunConfig.from_args(args))


def cmd_reverse(args):
    run_reverse(RunConfig.from_args(args))


def cmd_compress(args):
    result = run_compress(RunConfig.from_args(args))
    if result.failures and not args.quiet:
        print(f"   ({len(result.failures)} strategy attempt(s) failed and were skipped)")


def cmd_deps(args):
    print_dependencies()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='pdf-tools',
        description='A collection of PDF utility commands',
        epilog='Example: pdf-tools pdf overlay --file1 base.pdf --file2 overlay.pdf --output result.pdf'
    )
    parser.add_argument('--version', action='version', version=f'%(prog)s {__version__}')
    parser.add_argument('--quiet', action='store_true', help='Only print warnings and errors')
    parser.add_argument('--temp-dir', help=f'Where to create working directories (env: {TEMP_DIR_ENV})')

    sub = parser.add_subparsers(dest='command')
    sub.add_parser('deps', help='Show which PDF libraries are installed').set_defaults(func=cmd_deps)

    pdf = sub.add_parser('pdf', help='PDF manipulation utilities (overlay, reverse, compress)')
    pdf_sub = pdf.add_subparsers(dest='pdf_command')

    overlay = pdf_sub.add_parser(
        'overlay',
        help='Overlay two PDF files',
        description='Overlay pages from two PDF files. Pages from file2 are overlaid onto pages from file1. '
                    'If the PDFs have different page counts, remaining pages from the longer PDF are included as-is.'
    )
    overlay.add_argument('--file1', required=True, help='Path to the first PDF file (base layer)')
    overlay.add_argument('--file2', required=True, help='Path to the second PDF file (overlay layer)')
    overlay.add_argument('--output', required=True, help='Path for the output PDF file')
    overlay.add_argument('--mode', choices=OVERLAY_MODES, default=DEFAULT_OVERLAY_MODE,
                         help='stamp = draw file2 over file1; concat = place the pages one after the other '
                              f'(default: {DEFAULT_OVERLAY_MODE})')
    overlay.set_defaults(func=cmd_overlay)

    reverse = pdf_sub.add_parser(
        'reverse',
        help='Reverse order of pages',
        description='Order of pages in a PDF will be reversed and saved as a new PDF'
    )
    reverse.add_argument('--file', required=True, help='Path to the PDF file')
    reverse.add_argument('--output', required=True, help='Path for the output PDF file')
    reverse.set_defaults(func=cmd_reverse)

    compress = pdf_sub.add_parser(
        'compress',
        help='Compress PDF file to reduce size',
        description='Compress a PDF file without significantly affecting quality. '
                    'Tries several optimization strategies and keeps the smallest result.'
    )
    compress.add_argument('--file', required=True, help='Path to the PDF file to compress')
    compress.add_argument('--output', required=True, help='Path for the compressed output PDF file')
    compress.add_argument('--passes', type=int, default=OPTIMIZE_PASSES,
                          help=f'Maximum extra optimization passes (default: {OPTIMIZE_PASSES})')
    compress.set_defaults(func=cmd_compress)

    return parser


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)

    if not hasattr(args, 'func'):
        parser.print_help()
        return 1

    try:
        args.func(args)
    except PdfToolError as e:
        print(f"❌ {e}", file=sys.stderr)
        return 1

    return 0


if __name__ == '__main__':
    sys.exit(main())
