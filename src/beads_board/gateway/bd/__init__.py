"""Gateway for invoking the bd command-line executable.

Import from submodules:
- beads_board.gateway.bd.abc: BdExecutor (ABC)
- beads_board.gateway.bd.real: RealBdExecutor
- beads_board.gateway.bd.fake: FakeBdExecutor
- beads_board.gateway.bd.types: BdOutput
"""
