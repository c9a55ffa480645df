"""
Crawler: link discovery, budget accounting, page state machine and the async driver.
"""

from .budget import CrawlBudget
from .driver import CrawlDriver, CrawlStats
from .sink import JsonlSink, MemorySink
from .state_machine import CrawlStateMachine

__all__ = [
    'CrawlBudget',
    'CrawlDriver',
    'CrawlStats',
    'CrawlStateMachine',
    'JsonlSink',
    'MemorySink',
]
