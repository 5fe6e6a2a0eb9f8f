"""Provisioning pipeline for the Ubuntu web stack container."""
