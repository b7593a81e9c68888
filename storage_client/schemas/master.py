"""Pydantic schemas for master server responses."""

import random
from typing import List, Optional, Tuple

from pydantic import ConfigDict, Field, field_validator

from storage_client.schemas.common import WireModel


class VolumeLocation(WireModel):
    """A server hosting a replica of a volume."""
    model_config = ConfigDict(populate_by_name=True, extra='ignore', frozen=True)

    url: str = ''
    public_url: str = Field('', alias='publicUrl')


class LookupResult(WireModel):
    """Response of /dir/lookup; cached by volume ID and shared, so immutable."""
    model_config = ConfigDict(populate_by_name=True, extra='ignore', frozen=True)

    volume_id: str = Field('', alias='volumeId')
    locations: Tuple[VolumeLocation, ...] = ()
    error: str = ''

    @field_validator('volume_id', mode='before')
    @classmethod
    def _volume_id_as_str(cls, value):
        return '' if value is None else str(value)

    @field_validator('locations', mode='before')
    @classmethod
    def _null_locations(cls, value):
        return value or ()

    def head(self) -> Optional[VolumeLocation]:
        """First location: the write owner of the volume."""
        if not self.locations:
            return None
        return self.locations[0]

    def random_pick_for_read(self, rng: Optional[random.Random] = None) -> Optional[VolumeLocation]:
        """Any location, chosen uniformly at random, for read requests."""
        if not self.locations:
            return None
        return (rng or random).choice(self.locations)


class AssignResult(WireModel):
    """Response of /dir/assign."""
    file_id: str = Field('', alias='fid')
    url: str = ''
    public_url: str = Field('', alias='publicUrl')
    count: int = 0
    error: str = ''


class DataNode(WireModel):
    free: int = Field(0, alias='Free')
    max: int = Field(0, alias='Max')
    public_url: str = Field('', alias='PublicUrl')
    url: str = Field('', alias='Url')
    volumes: int = Field(0, alias='Volumes')


class Rack(WireModel):
    data_nodes: List[DataNode] = Field(default_factory=list, alias='DataNodes')
    free: int = Field(0, alias='Free')
    max: int = Field(0, alias='Max')


class DataCenter(WireModel):
    free: int = Field(0, alias='Free')
    max: int = Field(0, alias='Max')
    racks: List[Rack] = Field(default_factory=list, alias='Racks')


class Layout(WireModel):
    replication: str = Field('', alias='Replication')
    writables: List[int] = Field(default_factory=list, alias='Writables')


class Topology(WireModel):
    data_centers: List[DataCenter] = Field(default_factory=list, alias='DataCenters')
    free: int = Field(0, alias='Free')
    max: int = Field(0, alias='Max')
    layouts: List[Layout] = Field(default_factory=list, alias='Layouts')


class SystemStatus(WireModel):
    """Response of /dir/status."""
    topology: Topology = Field(default_factory=Topology, alias='Topology')
    version: str = Field('', alias='Version')
    error: str = Field('', alias='Error')


class ClusterStatus(WireModel):
    """Response of /cluster/status."""
    is_leader: bool = Field(False, alias='IsLeader')
    leader: str = Field('', alias='Leader')
    peers: List[str] = Field(default_factory=list, alias='Peers')
