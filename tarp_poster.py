#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Export a layered poster as tiled printable PDF pages.
"""

import tarp_poster_maker.cli


if __name__ == "__main__":
	tarp_poster_maker.cli.main()
