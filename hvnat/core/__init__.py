# SPDX-License-Identifier: LGPL-3.0-or-later
# hvnat/core/__init__.py
