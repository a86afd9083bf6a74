"""Dagger pipeline for the Cloud Run greeting service.

Runs the pytest suites and the live service in containers so the same
checks run locally and in CI.
"""

import asyncio

import dagger as dg
from dagger import dag, function, object_type

SERVICE_PORT = 8080


@object_type
class GreetingPipeline:
    """Container test pipeline for the greeting service, built on uv.

    This module provides:
    - Unit tests in isolated containers
    - Unit tests across multiple Python versions
    - The greeting service as a bindable Dagger service
    - End-to-end tests against that service
    """

    # Base container creation
    @function
    def test_container(
        self, source: dg.Directory, python_version: str = "3.12"
    ) -> dg.Container:
        """Create a base container with uv and source code.

        Args:
            source: Directory containing the source code
            python_version: Python version to use (default: 3.12)

        Returns:
            Container configured with uv and source code
        """
        uv_cache = dag.cache_volume("uv")

        return (
            dag.container()
            .from_(f"ghcr.io/astral-sh/uv:python{python_version}-bookworm-slim")
            .with_mounted_cache("/root/.cache/uv", uv_cache)
            .with_directory("/app", source)
            .with_workdir("/app")
            .with_env_variable("UV_SYSTEM_PYTHON", "1")
        )

    # Unit testing functions
    @function
    async def unit_test(
        self, source: dg.Directory, python_version: str = "3.12"
    ) -> str:
        """Run unit tests with pytest.

        Args:
            source: Directory containing the source code
            python_version: Python version to use

        Returns:
            Test output from pytest
        """
        return await self.run_test(source, "tests/unit", python_version)

    @function
    async def unit_test_matrix(
        self, source: dg.Directory, versions: str = "3.10,3.11,3.12"
    ) -> str:
        """Run unit tests concurrently on multiple Python versions.

        Args:
            source: Directory containing the source code
            versions: Comma-separated list of Python versions

        Returns:
            Formatted test results for all versions
        """
        version_list = [v.strip() for v in versions.split(",") if v.strip()]

        async def test_version(version: str) -> str:
            try:
                result = await self.unit_test(source, version)
            except dg.ExecError as e:
                return f"Python {version}: FAILED\n{e.stdout}{e.stderr}"
            except dg.QueryError as e:
                # e.g. no uv image published for this version
                return f"Python {version}: FAILED\n{e}"
            return f"Python {version}: PASSED\n{result}"

        results = await asyncio.gather(*[test_version(v) for v in version_list])

        output_lines = ["=== MULTI-VERSION TEST RESULTS ===", ""]
        for result in results:
            output_lines.extend([result, "=" * 50, ""])

        return "\n".join(output_lines)

    @function
    async def run_test(
        self, source: dg.Directory, path: str, python_version: str = "3.12"
    ) -> str:
        """Run tests at a specific path.

        Args:
            source: Directory containing the source code
            path: Path to test files or directory
            python_version: Python version to use

        Returns:
            Test output from pytest
        """
        return await (
            self.test_container(source, python_version)
            .with_exec(["uv", "pip", "install", "-e", ".[test]"])
            .with_exec(["pytest", path, "-v", "--tb=short"])
            .stdout()
        )

    # Service-related functions
    @function
    def api_service(
        self, source: dg.Directory, python_version: str = "3.12"
    ) -> dg.Service:
        """Run the greeting service the way Cloud Run does.

        The port is injected through PORT, matching the platform's
        contract, and exposed so other containers can bind to it.

        Args:
            source: Directory containing the application code
            python_version: Python version to use (default: 3.12)

        Returns:
            A Dagger service running the greeting service
        """
        return (
            self.test_container(source, python_version)
            .with_exec(["uv", "pip", "install", "-e", "."])
            .with_env_variable("PORT", str(SERVICE_PORT))
            .with_exposed_port(SERVICE_PORT)
            .as_service(args=["python", "-m", "hello_cloud_run"])
        )

    @function
    async def test_api_service(
        self, source: dg.Directory, python_version: str = "3.12"
    ) -> str:
        """Smoke-test the service with curl.

        Fetches the greeting from /hello and the status code of an
        unknown path, which should be 404.

        Args:
            source: Directory containing the source code
            python_version: Python version to use

        Returns:
            Report of the responses received
        """
        api_svc = self.api_service(source, python_version)
        base_url = f"http://api:{SERVICE_PORT}"

        test_client = (
            dag.container()
            .from_("alpine:latest")
            .with_exec(["apk", "add", "--no-cache", "curl"])
            .with_service_binding("api", api_svc)
        )

        hello_response = await test_client.with_exec(
            ["curl", "-sf", f"{base_url}/hello"]
        ).stdout()

        unknown_status = await test_client.with_exec(
            ["curl", "-s", "-o", "/dev/null", "-w", "%{http_code}", f"{base_url}/unknown"]
        ).stdout()

        result_lines = [
            "=== API SERVICE TEST RESULTS ===",
            "",
            "Greeting Endpoint (GET /hello):",
            hello_response,
            "",
            "Unknown Path (GET /unknown) status:",
            unknown_status,
        ]

        return "\n".join(result_lines)

    @function
    async def integration_test(
        self, source: dg.Directory, python_version: str = "3.12"
    ) -> str:
        """Run the e2e pytest suite against a live service.

        The service is bound under the hostname 'api' and its URL is
        passed to the tests through API_BASE_URL.

        Args:
            source: Directory containing the source code
            python_version: Python version to use

        Returns:
            Integration test results from pytest
        """
        api_svc = self.api_service(source, python_version)

        return await (
            self.test_container(source, python_version)
            .with_service_binding("api", api_svc)
            .with_env_variable("API_BASE_URL", f"http://api:{SERVICE_PORT}")
            .with_exec(["uv", "pip", "install", "-e", ".[test]"])
            .with_exec(["pytest", "tests/e2e", "-v", "--tb=short"])
            .stdout()
        )
