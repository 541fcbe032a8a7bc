"""Adapters connecting the console core to the privileged daemon and disk."""
