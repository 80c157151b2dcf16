"""
CLI Module

Architectural Intent:
- Command-line interface for kubeship: deploy, rollback, health-check
- Parses arguments into a DeploymentRequest and delegates to use cases via the
  composition root
- Writes CI outputs and the step summary; maps the result to the exit code
- Supports --verbose/--debug flags for log level control
"""

import argparse
import asyncio
import dataclasses
import logging
import os
import sys
import traceback
from typing import Optional

from kubeship.application.dtos.orchestration_dtos import OrchestrationResult
from kubeship.composition_root import create_container
from kubeship.domain.entities.deployment_request import (
    ClusterType,
    DeploymentRequest,
    HealthCheckConfig,
    IngressConfig,
    ProbeConfig,
    ResourceSpec,
    RouteConfig,
    ServiceType,
    parse_env_vars,
)
from kubeship.domain.errors import ConfigurationError, DeploymentError
from kubeship.infrastructure.adapters.openshift_adapter import detect_cluster_type
from kubeship.infrastructure.config import KubeshipConfig, load_config
from kubeship.infrastructure.logging import configure_logging, level_from_name
from kubeship.infrastructure.telemetry.otel_exporter import create_exporter
from kubeship.presentation.cli.outputs import write_outputs, write_summary

logger = logging.getLogger(__name__)


def _bool_arg(value: str) -> bool:
    lowered = value.strip().lower()
    if lowered in ("true", "1", "yes", "on"):
        return True
    if lowered in ("false", "0", "no", "off"):
        return False
    raise argparse.ArgumentTypeError(f"expected true or false, got {value!r}")


def _add_target_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--deployment-name",
        "-n",
        default=os.environ.get("GITHUB_REPOSITORY_NAME", ""),
        help="Deployment name (default: $GITHUB_REPOSITORY_NAME)",
    )
    parser.add_argument("--namespace", default="default", help="Target namespace")
    parser.add_argument(
        "--cluster-type",
        choices=[t.value for t in ClusterType],
        help="Cluster flavour (default: from config)",
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="kubeship",
        description="Deploy, verify and roll back container images on Kubernetes and OpenShift",
    )
    parser.add_argument(
        "--verbose", "-v", action="store_true", help="Enable verbose output"
    )
    parser.add_argument(
        "--debug", action="store_true", help="Enable debug output with tracebacks"
    )
    parser.add_argument(
        "--json-logs", action="store_true", help="Emit structured JSON log lines"
    )
    parser.add_argument(
        "--config", "-c", default=None, help="Path to kubeship.json config"
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    deploy_parser = subparsers.add_parser("deploy", help="Deploy a container image")
    _add_target_args(deploy_parser)
    deploy_parser.add_argument("--image", "-i", required=True, help="Container image reference")
    deploy_parser.add_argument(
        "--container-name", default="", help="Container name (default: deployment name)"
    )
    deploy_parser.add_argument("--port", type=int, default=8080, help="Container port")
    deploy_parser.add_argument("--replicas", type=int, default=1, help="Replica count")
    deploy_parser.add_argument(
        "--service-type",
        default=ServiceType.CLUSTER_IP.value,
        choices=[t.value for t in ServiceType],
        help="Service type",
    )
    deploy_parser.add_argument("--version", default="latest", help="Version label")
    deploy_parser.add_argument("--manifest-template", default=None, help="Manifest template file")
    deploy_parser.add_argument(
        "--env-vars", default="", help="Newline-delimited KEY=VALUE environment variables"
    )
    deploy_parser.add_argument("--cpu-limit", default="500m")
    deploy_parser.add_argument("--memory-limit", default="512Mi")
    deploy_parser.add_argument("--cpu-request", default="100m")
    deploy_parser.add_argument("--memory-request", default="128Mi")
    deploy_parser.add_argument("--enable-probes", type=_bool_arg, default=False)
    deploy_parser.add_argument("--liveness-probe-path", default="")
    deploy_parser.add_argument("--readiness-probe-path", default="")
    deploy_parser.add_argument(
        "--health-check", type=_bool_arg, default=True, help="Run the HTTP health check"
    )
    deploy_parser.add_argument("--health-check-path", default="/")
    deploy_parser.add_argument("--health-check-timeout", type=int, default=None)
    deploy_parser.add_argument("--ingress-host", default="")
    deploy_parser.add_argument("--ingress-tls", type=_bool_arg, default=None)
    deploy_parser.add_argument("--auto-ingress", type=_bool_arg, default=False)
    deploy_parser.add_argument("--create-route", type=_bool_arg, default=False)
    deploy_parser.add_argument("--route-hostname", default="")
    deploy_parser.add_argument(
        "--cluster-name",
        default=os.environ.get("CLUSTER_NAME", ""),
        help="Cloud cluster name for provider lookups (default: $CLUSTER_NAME)",
    )

    rollback_parser = subparsers.add_parser(
        "rollback", help="Roll a deployment back to its previous revision"
    )
    _add_target_args(rollback_parser)

    health_parser = subparsers.add_parser(
        "health-check", help="Check pods and HTTP health of a deployment"
    )
    _add_target_args(health_parser)
    health_parser.add_argument("--app-url", default="", help="Application URL to probe")
    health_parser.add_argument("--health-check-path", default="/")
    health_parser.add_argument("--health-check-timeout", type=int, default=None)

    return parser


def build_request(args: argparse.Namespace, config: KubeshipConfig) -> DeploymentRequest:
    timeout = args.health_check_timeout or config.timeouts.health_check_seconds
    return DeploymentRequest(
        image=args.image,
        deployment_name=args.deployment_name,
        namespace=args.namespace,
        container_name=args.container_name,
        port=args.port,
        replicas=args.replicas,
        service_type=ServiceType.parse(args.service_type),
        resources=ResourceSpec(
            limits_cpu=args.cpu_limit,
            limits_memory=args.memory_limit,
            requests_cpu=args.cpu_request,
            requests_memory=args.memory_request,
        ),
        env_vars=parse_env_vars(args.env_vars),
        probes=ProbeConfig(
            enabled=args.enable_probes,
            liveness_path=args.liveness_probe_path,
            readiness_path=args.readiness_probe_path,
        ),
        health_check=HealthCheckConfig(
            enabled=args.health_check, path=args.health_check_path, timeout_seconds=timeout
        ),
        ingress=IngressConfig(
            host=args.ingress_host, tls=args.ingress_tls, auto_detect=args.auto_ingress
        ),
        route=RouteConfig(create=args.create_route, hostname=args.route_hostname),
        manifest_template=args.manifest_template,
        version=args.version,
    )


async def resolve_config(args: argparse.Namespace, config: KubeshipConfig) -> KubeshipConfig:
    """Fold CLI arguments and the legacy environment variables into the loaded config."""
    cluster = config.cluster
    if args.cluster_type:
        cluster = dataclasses.replace(cluster, type=args.cluster_type)
    elif args.command == "health-check" and not os.environ.get("KUBESHIP_CLUSTER_TYPE"):
        detected = await detect_cluster_type()
        cluster = dataclasses.replace(cluster, type=detected.value)
    ClusterType.parse(cluster.type)

    cluster_name = getattr(args, "cluster_name", "") or cluster.name
    cluster = dataclasses.replace(cluster, name=cluster_name)

    registry = config.registry
    if not registry.ibm_cloud_api_key and os.environ.get("IBM_CLOUD_API_KEY"):
        registry = dataclasses.replace(registry, ibm_cloud_api_key=os.environ["IBM_CLOUD_API_KEY"])

    return dataclasses.replace(config, cluster=cluster, registry=registry)


async def run_command(args: argparse.Namespace, config: KubeshipConfig) -> OrchestrationResult:
    telemetry = await create_exporter(config.telemetry.endpoint, config.telemetry.insecure)
    container = create_container(config, telemetry=telemetry)
    try:
        if args.command == "deploy":
            request = build_request(args, config)
            print(
                f"[*] Deploying {request.image} as "
                f"{request.namespace}/{request.deployment_name}..."
            )
            return await container.deploy.execute(request)

        if args.command == "rollback":
            if not args.deployment_name:
                raise ConfigurationError("deployment name is required")
            print(f"[*] Rolling back {args.namespace}/{args.deployment_name}...")
            return await container.rollback.execute(args.deployment_name, args.namespace)

        if not args.deployment_name:
            raise ConfigurationError("deployment name is required")
        print(f"[*] Checking health of {args.namespace}/{args.deployment_name}...")
        return await container.health_check.execute(
            args.deployment_name,
            args.namespace,
            app_url=args.app_url,
            path=args.health_check_path,
            timeout=args.health_check_timeout or config.timeouts.health_check_seconds,
        )
    finally:
        await telemetry.shutdown()


def summary_details(args: argparse.Namespace) -> dict[str, str]:
    details = {
        "Deployment Name": args.deployment_name,
        "Namespace": args.namespace or "default",
    }
    if args.command == "deploy":
        details["Image"] = args.image
        details["Replicas"] = str(args.replicas)
    return details


def report(result: OrchestrationResult) -> None:
    if result.succeeded:
        print(f"[+] {result.operation.capitalize()} successful.")
        if result.app_url:
            print(f"[+] Application URL: {result.app_url}")
        if result.health_check_result:
            print(f"[+] Health check: {result.health_check_result}")
        if result.operation == "rollback":
            print(
                f"[+] Revision {result.previous_revision} ({result.previous_image}) -> "
                f"{result.rollback_revision} ({result.rollback_image})"
            )
    else:
        print(f"[-] {result.operation.capitalize()} failed ({result.reason}): {result.message}")


async def async_main(argv: Optional[list[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    config = load_config(args.config)
    # Configure logging based on flags
    if args.debug:
        level = logging.DEBUG
    elif args.verbose:
        level = logging.INFO
    else:
        level = level_from_name(config.log_level)
    configure_logging(level=level, json_format=args.json_logs)

    if not args.command:
        parser.print_help()
        return 2

    try:
        config = await resolve_config(args, config)
        result = await run_command(args, config)
    except (ConfigurationError, ValueError) as e:
        message = e.message if isinstance(e, DeploymentError) else str(e)
        result = OrchestrationResult.failure(args.command, ConfigurationError.reason, message)
    except Exception as e:
        print(f"[-] {args.command} failed unexpectedly: {e}")
        if args.debug:
            traceback.print_exc()
        raise

    report(result)
    write_outputs(result)
    write_summary(result, summary_details(args))
    return 0 if result.succeeded else 1


def main():
    sys.exit(asyncio.run(async_main()))


if __name__ == "__main__":
    main()
