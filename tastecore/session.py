from __future__ import annotations

from dataclasses import dataclass, field

from .mapping import ChangeInput, ParameterMapper, resolve_change
from .params import MusicTasteParameters, VisualParameters, VisualParametersUpdate


@dataclass
class TasteSession:
    """Current visual and taste state of one caller.

    Callers hold a session explicitly instead of sharing one process-wide
    record; the HTTP layer builds one per request from the stored profile.
    """

    visual: VisualParameters = field(default_factory=VisualParameters)
    taste: MusicTasteParameters = field(default_factory=MusicTasteParameters)
    mapper: ParameterMapper = field(default_factory=ParameterMapper)

    def apply(self, change: ChangeInput) -> VisualParameters:
        event = resolve_change(self.taste, change)
        if event is None:
            return self.visual
        self.visual = self.mapper.apply(self.visual, self.taste, event)
        self.taste = self.taste.with_change(event)
        return self.visual

    def load_taste(self, taste: MusicTasteParameters) -> VisualParameters:
        self.taste = taste
        self.visual = self.mapper.apply_profile(self.visual, taste)
        return self.visual

    def update_visual(self, update: VisualParametersUpdate) -> VisualParameters:
        self.visual = update.apply_to(self.visual)
        return self.visual
