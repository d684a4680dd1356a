import numpy as np


def sine(freq, seconds, sr, amplitude=0.5):
    t = np.arange(int(round(seconds * sr))) / float(sr)
    return amplitude * np.sin(2.0 * np.pi * freq * t)
