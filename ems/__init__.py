# SPDX-FileCopyrightText: 2025 Roland Knall <rknall@gmail.com>
# SPDX-License-Identifier: GPL-2.0-only
"""EMS access core: authentication, sessions and role-based authorization."""

__version__ = "0.1.0"
