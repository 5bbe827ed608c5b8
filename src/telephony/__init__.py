"""Telephony audio handling: wire codecs, silence segmentation and paced playback.

Everything in this package works on plain bytes at the 8 kHz telephone rate and
knows nothing about the transport that carries the frames.
"""
