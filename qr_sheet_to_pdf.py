#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Lay out QR code images on a printable PDF sheet.
"""

# local repo modules
import qr_sheet_layout.cli


if __name__ == "__main__":
	qr_sheet_layout.cli.main()
