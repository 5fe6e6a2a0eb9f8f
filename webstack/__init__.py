"""Provisioner for a single SSH + Apache + vsftpd Ubuntu container."""

__version__ = "0.8.0"
