"""Marketplace operator filter checks for NFT collections."""
