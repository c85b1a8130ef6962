"""
INI based description of a validation run.
"""

from __future__ import annotations

import pathlib as pl
from configparser import ConfigParser
from dataclasses import dataclass, field, replace
from typing import Dict, List, Optional

from archive_diff_validator.diff_data import DiffCategory
from archive_diff_validator.errors import ValidationInputError
from archive_diff_validator.validator import PARAM_DIFF_VERSION, ParamValue, split_list


@dataclass(frozen=True)
class ValidationSettings:
    """
    Everything needed to run one validation. `params` uses the same keys as
    `ArchiveDiffValidator.validate()`.
    """
    left: str = ''
    right: str = ''
    filters: List[str] = field(default_factory=list)
    params: Dict[str, ParamValue] = field(default_factory=dict)
    matcher: str = 'regex'

    @property
    def resources(self) -> List[str]:
        return [self.left, self.right]

    def merged(self, left: Optional[str] = None, right: Optional[str] = None,
               filters: Optional[List[str]] = None,
               params: Optional[Dict[str, ParamValue]] = None,
               matcher: Optional[str] = None) -> ValidationSettings:
        """
        Returns a copy where every given value overrides the stored one. Filters are appended,
        parameters are overridden per key.
        """
        merged_params = dict(self.params)
        merged_params.update(params or {})
        return replace(
            self,
            left=left or self.left,
            right=right or self.right,
            filters=self.filters + list(filters or []),
            params=merged_params,
            matcher=matcher or self.matcher,
        )


class IniConfig:
    """
    Reads `ValidationSettings` from an INI file with the sections `[resources]`, `[filters]`,
    `[expectations]` and `[validation]`.
    """

    def __init__(self, ini_path: pl.Path):
        self._ini_path = pl.Path(ini_path)
        # Keys such as expectAdds are case sensitive.
        self._cfg = ConfigParser(interpolation=None)
        self._cfg.optionxform = str
        read_ok = self._cfg.read(str(self._ini_path), encoding='utf-8-sig')
        if not read_ok:
            raise ValidationInputError(f'INI file not found or unreadable: {self._ini_path}')

    def load_settings(self) -> ValidationSettings:
        params = {}
        for key in [category.param_key for category in DiffCategory] + [PARAM_DIFF_VERSION]:
            value = self._cfg.get('expectations', key, fallback='').strip()
            if value:
                params[key] = value

        return ValidationSettings(
            left=self._cfg.get('resources', 'left', fallback='').strip(),
            right=self._cfg.get('resources', 'right', fallback='').strip(),
            filters=split_list(self._cfg.get('filters', 'patterns', fallback='')),
            params=params,
            matcher=self._cfg.get('validation', 'matcher', fallback='regex').strip() or 'regex',
        )
