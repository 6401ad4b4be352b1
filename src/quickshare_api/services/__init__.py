"""
Workflows behind the Quickshare screens.

Upload orchestration, paginated file listing, post editing and the
confirmation dialog that gates every destructive action.
"""
