"""Unpack and clean up snapshots of the hardware pseudofiles."""