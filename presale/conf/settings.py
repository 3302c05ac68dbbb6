from pydantic import BaseModel, ConfigDict, Field


class PresaleSettings(BaseModel):
    """Runtime settings shared by every presale instance in a process."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    # Name of the network the presales are deployed on, used in log lines only
    NETWORK_NAME: str = "local"

    # Decimal places of the native collateral (wei-like base units)
    COLLATERAL_DECIMALS: int = Field(default=18, ge=0, le=36)
