"""
PPG Monitor — pulse-rate estimation from a fingertip pressed on a camera lens.

Each captured frame is reduced to the mean red-channel brightness; a rolling
window of those photoplethysmography (PPG) samples is detrended, smoothed and
analysed spectrally to obtain a stable BPM reading and a display waveform.
"""

__version__ = "0.1.0"
__author__ = "ppg_monitor"
