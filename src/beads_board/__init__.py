"""Resilient client layer over the beads (`bd`) issue tracker CLI.

See `beads-board --help` for the command-line interface, and
beads_board.adapter.DaemonBeadsAdapter for the library entry point.
"""
