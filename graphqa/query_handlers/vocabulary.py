# vocabulary.py
import logging
import os
from dataclasses import dataclass, field
from typing import Dict, List, Optional

import yaml

from graphqa.core import settings

logger = logging.getLogger(__name__)


DEFAULT_STOPWORDS = [
    "the", "a", "an", "and", "or", "but", "in", "on", "at", "to", "for",
    "of", "with", "by", "from", "as", "is", "was", "are", "were",
    "this", "that", "these", "those", "it", "they", "them",
    "how", "what", "which", "who", "when", "where", "why",
]

DEFAULT_FIRST_NAMES = [
    "john", "jane", "mike", "david", "sarah", "chris", "emily",
    "michael", "jennifer", "robert", "lisa", "william", "maria", "james",
    "susan", "richard", "karen", "thomas", "nancy", "daniel", "betty",
    "paul", "andrew", "michelle", "joshua", "laura", "kenneth",
]

DEFAULT_DOMAIN_TERMS = [
    "gaussian", "splatting", "nerf", "neural", "method", "algorithm", "3d", "gs",
]

DEFAULT_OFF_DOMAIN_TERMS = [
    "job", "resume", "interview", "career", "salary", "hiring",
    "recipe", "cooking", "food", "restaurant", "movie", "music", "sports",
]

DEFAULT_TECHNICAL_TERMS = [
    "gaussian", "nerf", "splatting", "3dgs", "instantngp", "mipnerf",
    "tanks", "temples", "psnr", "ssim", "lpips",
]

DEFAULT_KNOWN_ACRONYMS = ["NeRF", "PSNR", "SSIM", "LPIPS", "3DGS", "InstantNGP"]


@dataclass
class Vocabulary:
    """Word lists used by the router's plausibility filter and parameter binding"""

    stopwords: List[str] = field(default_factory=lambda: list(DEFAULT_STOPWORDS))
    first_names: List[str] = field(default_factory=lambda: list(DEFAULT_FIRST_NAMES))
    domain_terms: List[str] = field(default_factory=lambda: list(DEFAULT_DOMAIN_TERMS))
    off_domain_terms: List[str] = field(default_factory=lambda: list(DEFAULT_OFF_DOMAIN_TERMS))
    technical_terms: List[str] = field(default_factory=lambda: list(DEFAULT_TECHNICAL_TERMS))
    known_acronyms: List[str] = field(default_factory=lambda: list(DEFAULT_KNOWN_ACRONYMS))


class VocabularyLoader:
    """Loads router vocabularies from a YAML file"""

    SECTIONS = (
        "stopwords",
        "first_names",
        "domain_terms",
        "off_domain_terms",
        "technical_terms",
        "known_acronyms",
    )

    def __init__(self, config_path: Optional[str] = None):
        self.config_path = config_path or settings.VOCABULARY_CONFIG_PATH
        self.vocabulary = self._load_config()

    def _load_config(self) -> Vocabulary:
        """Load configuration from YAML file, falling back to built-in lists"""
        if not os.path.exists(self.config_path):
            logger.warning(
                f"Vocabulary file not found at {self.config_path}, using defaults"
            )
            return Vocabulary()

        try:
            with open(self.config_path, encoding="utf-8") as file:
                config = yaml.safe_load(file) or {}
        except (OSError, yaml.YAMLError) as e:
            logger.error(f"Error loading vocabulary config: {str(e)}")
            return Vocabulary()

        vocabulary = Vocabulary()
        for section in self.SECTIONS:
            values = config.get(section)
            if values is None:
                continue
            if not isinstance(values, list):
                logger.warning(f"Ignoring vocabulary section '{section}': not a list")
                continue
            setattr(vocabulary, section, [str(value) for value in values])

        logger.info(
            f"Loaded vocabulary: {len(vocabulary.first_names)} first names, "
            f"{len(vocabulary.technical_terms)} technical terms"
        )
        return vocabulary

    def as_dict(self) -> Dict[str, List[str]]:
        return {section: list(getattr(self.vocabulary, section)) for section in self.SECTIONS}


# Global instance, loaded on first use
_vocabulary: Optional[Vocabulary] = None


def get_vocabulary() -> Vocabulary:
    """Get the global vocabulary instance"""
    global _vocabulary
    if _vocabulary is None:
        _vocabulary = VocabularyLoader().vocabulary
    return _vocabulary


def initialize_vocabulary(config_path: Optional[str] = None) -> Vocabulary:
    """Reload the global vocabulary from a specific file"""
    global _vocabulary
    _vocabulary = VocabularyLoader(config_path).vocabulary
    return _vocabulary
