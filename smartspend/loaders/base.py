# smartspend/loaders/base.py
from abc import ABC, abstractmethod


class BaseLoader(ABC):
    @abstractmethod
    def parse(self, text: str):
        """
        Return Transaction instances parsed from raw statement text.
        Rows that cannot be parsed are dropped.
        """
        pass

    def load(self, file_path: str):
        with open(file_path, newline='', encoding='utf-8') as f:
            return self.parse(f.read())
