"""Virtual content overlay for disc file trees and live memory images."""

__version__ = "0.1.0"
