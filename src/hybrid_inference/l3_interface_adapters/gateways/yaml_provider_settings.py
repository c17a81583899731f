"""Gateway: per-capability provider choice persisted as YAML — implements ProviderSettings port."""

from __future__ import annotations

import logging
from pathlib import Path

import yaml

from hybrid_inference.l1_entities.capability import Capability, ProviderChoice

log = logging.getLogger('hinf.settings')


class YamlProviderSettings:
    """Maps capability values to ``local``/``cloud`` in a small YAML file.

    The file is re-read on every lookup so changes made by another process
    (e.g. the CLI) take effect on the next provider resolution. Missing or
    invalid entries read as ``local``.
    """

    def __init__(self, path: Path) -> None:
        self._path = path

    @property
    def path(self) -> Path:
        return self._path

    def choice_for(self, capability: Capability) -> ProviderChoice:
        raw = self._read().get(capability.value)
        if raw is None:
            return ProviderChoice.LOCAL
        try:
            return ProviderChoice(raw)
        except ValueError:
            log.warning('Invalid provider choice %r for %s in %s; using local', raw, capability.value, self._path)
            return ProviderChoice.LOCAL

    def set_choice(self, capability: Capability, choice: ProviderChoice) -> None:
        data = self._read()
        data[capability.value] = choice.value
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._path.write_text(yaml.safe_dump(data, sort_keys=True), encoding='utf-8')
        log.info('Provider for %s set to %s', capability.value, choice.value)

    def all_choices(self) -> dict[Capability, ProviderChoice]:
        return {cap: self.choice_for(cap) for cap in Capability}

    def _read(self) -> dict:
        if not self._path.exists():
            return {}
        try:
            data = yaml.safe_load(self._path.read_text(encoding='utf-8'))
        except yaml.YAMLError:
            log.warning('Unreadable provider settings %s; using local for every capability', self._path, exc_info=True)
            return {}
        return data if isinstance(data, dict) else {}
