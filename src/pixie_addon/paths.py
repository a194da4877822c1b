from __future__ import annotations

import os
import pathlib

CONFIG_FILENAME = "pixie.yaml"


class Paths:
    @property
    def root(self) -> pathlib.Path:
        """Return the add-on configuration directory.

        Raises:
            RuntimeError: If PIXIE_ADDON_ROOT is not set in the environment

        """
        if "PIXIE_ADDON_ROOT" not in os.environ:
            msg = "PIXIE_ADDON_ROOT environment variable not set."
            raise RuntimeError(msg)

        return pathlib.Path(os.environ["PIXIE_ADDON_ROOT"])

    def stack(self, stack_name: str) -> pathlib.Path:
        return self.root / stack_name

    def stack_config(self, stack_name: str) -> pathlib.Path:
        return self.stack(stack_name) / CONFIG_FILENAME
