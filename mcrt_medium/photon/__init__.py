"""
Photon packets propagated through the medium system.
"""

from mcrt_medium.photon.packet import PhotonPacket

__all__ = ["PhotonPacket"]
