from portalgate.core.directory.base import ClientRecord, ContactRecord, Directory, DirectoryUser, InMemoryDirectory
from portalgate.core.directory.rest import RestDirectory

__all__ = ["ClientRecord", "ContactRecord", "Directory", "DirectoryUser", "InMemoryDirectory", "RestDirectory"]
