from databricks.sdk import WorkspaceClient


class DatabricksClientWrapper:
    """Wrapper around Databricks SDK for the file operations the migration needs."""

    def __init__(self, client: WorkspaceClient = None):
        self.client = client or WorkspaceClient()

    def read_file(self, file_path: str) -> bytes:
        """Read a file from a Unity Catalog volume using the Files API."""
        try:
            response = self.client.files.download(file_path=file_path)
            return response.contents.read()
        except Exception as e:
            raise Exception(f"Failed to read file {file_path}: {str(e)}")
