"""Rule modules used by the game engine.

- bonuses: majority/minority shareholder payouts
- stock: purchases and merger swap/sell
- merger: merger record, tie-breaks and merger turn order
- phase_machine: phase entry guards and turn rotation
- settlement: end-of-game eligibility and final payout
"""
