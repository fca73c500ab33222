"""Static SDK configuration, loaded from the environment / .env."""

import json
import os
from typing import Dict, List, Optional
from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict

from ontlogin.common.protocol import ServerInfo, VCFilter
from ontlogin.crypto.sign import ES256


class SDKConfig(BaseModel):
    """Accepted chains/algorithms, server descriptor and per-action credential filters."""
    model_config = ConfigDict(frozen=True)

    chain: List[str]
    alg: List[str]
    server_info: ServerInfo
    vc_filters: Dict[int, List[VCFilter]] = {}

    def filters_for(self, action: int) -> Optional[List[VCFilter]]:
        """Credential filters configured for action, or None."""
        filters = self.vc_filters.get(int(action))
        return list(filters) if filters else None

    def required_types(self, action: int) -> List[str]:
        """Credential types marked required for action."""
        return [f.type for f in self.vc_filters.get(int(action), []) if f.required]


def _split_list(value: str) -> List[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


def load_vc_filters(path: str) -> Dict[int, List[VCFilter]]:
    """
    Load credential filters from a JSON file.

    Args:
        path: JSON object keyed by action number, e.g.
              {"0": [{"type": "EmailCredential", "required": true}]}

    Returns:
        dict of action -> filters
    """
    with open(path, 'r') as f:
        raw = json.load(f)
    return {
        int(action): [VCFilter.model_validate(item) for item in items]
        for action, items in raw.items()
    }


def load_config() -> SDKConfig:
    """Build SDKConfig from environment variables (and a .env file if present)."""
    load_dotenv()
    server_info = ServerInfo(
        name=os.getenv("SERVER_NAME", "ontlogin"),
        icon=os.getenv("SERVER_ICON", ""),
        url=os.getenv("SERVER_URL", "http://localhost"),
        did=os.getenv("SERVER_DID", ""),
        verification_method=os.getenv("SERVER_VERIFICATION_METHOD", ""),
    )
    vc_filters_file = os.getenv("VC_FILTERS_FILE")
    return SDKConfig(
        chain=_split_list(os.getenv("ONTLOGIN_CHAINS", "ont")),
        alg=_split_list(os.getenv("ONTLOGIN_ALGS", ES256)),
        server_info=server_info,
        vc_filters=load_vc_filters(vc_filters_file) if vc_filters_file else {},
    )
