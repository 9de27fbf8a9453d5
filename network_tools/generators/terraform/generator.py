"""
Terraform generator core for planned network topologies.
"""

import json
import subprocess
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml
from jinja2 import Environment, FileSystemLoader

from network_tools import __version__
from network_tools.errors import NetworkError
from network_tools.generators.common import (
    DEFAULT_TEMPLATES_DIR,
    load_and_validate_intents,
    prepare_output_directory,
)
from network_tools.model import NetworkIntent, Provider, Reference, ResourceKind, ResourceNode
from network_tools.planner import PlanResult, plan_network
from network_tools.synthesizers.common import find_references

from .hcl import hcl_value, local_name, render_body

TERRAFORM_TYPES: Dict[Provider, Dict[ResourceKind, str]] = {
    Provider.AWS: {
        ResourceKind.VPC: "aws_vpc",
        ResourceKind.SUBNET: "aws_subnet",
        ResourceKind.INTERNET_GATEWAY: "aws_internet_gateway",
        ResourceKind.EGRESS_ONLY_GATEWAY: "aws_egress_only_internet_gateway",
        ResourceKind.NAT_ADDRESS: "aws_eip",
        ResourceKind.NAT_GATEWAY: "aws_nat_gateway",
        ResourceKind.ROUTE_TABLE: "aws_route_table",
        ResourceKind.ROUTE_ASSOCIATION: "aws_route_table_association",
        ResourceKind.SECURITY_GROUP: "aws_security_group",
        ResourceKind.LOG_SINK: "aws_cloudwatch_log_group",
        ResourceKind.FLOW_LOG: "aws_flow_log",
        ResourceKind.SERVICE_ENDPOINT: "aws_vpc_endpoint",
    },
    Provider.AZURE: {
        ResourceKind.DDOS_PROTECTION_PLAN: "azurerm_network_ddos_protection_plan",
        ResourceKind.VPC: "azurerm_virtual_network",
        ResourceKind.SUBNET: "azurerm_subnet",
        ResourceKind.NAT_ADDRESS: "azurerm_public_ip",
        ResourceKind.NAT_GATEWAY: "azurerm_nat_gateway",
        ResourceKind.NAT_ADDRESS_ASSOCIATION: "azurerm_nat_gateway_public_ip_association",
        ResourceKind.ROUTE_TABLE: "azurerm_route_table",
        ResourceKind.ROUTE_ASSOCIATION: "azurerm_subnet_route_table_association",
        ResourceKind.SECURITY_GROUP: "azurerm_network_security_group",
        ResourceKind.SECURITY_ASSOCIATION: "azurerm_subnet_network_security_group_association",
        ResourceKind.FLOW_LOG: "azurerm_network_watcher_flow_log",
    },
    Provider.GCP: {
        ResourceKind.VPC: "google_compute_network",
        ResourceKind.SUBNET: "google_compute_subnetwork",
        ResourceKind.ROUTE_TABLE: "google_compute_route",
        ResourceKind.NAT_ADDRESS: "google_compute_router",
        ResourceKind.NAT_GATEWAY: "google_compute_router_nat",
        ResourceKind.SECURITY_GROUP: "google_compute_network_firewall_policy",
        ResourceKind.SECURITY_RULE: "google_compute_network_firewall_policy_rule",
        ResourceKind.SECURITY_ASSOCIATION: "google_compute_network_firewall_policy_association",
        ResourceKind.SERVICE_PERIMETER: "google_access_context_manager_service_perimeter",
    },
}

PROVIDER_SOURCES = {
    Provider.AWS: ("aws", "hashicorp/aws", "~> 5.0"),
    Provider.AZURE: ("azurerm", "hashicorp/azurerm", "~> 3.100"),
    Provider.GCP: ("google", "hashicorp/google", "~> 5.0"),
}


def terraform_type(node: ResourceNode) -> str:
    """Terraform resource type of a rendered node."""
    if (
        node.provider == Provider.AZURE
        and node.kind == ResourceKind.ROUTE_ASSOCIATION
        and "nat_gateway_id" in node.attributes
    ):
        return "azurerm_subnet_nat_gateway_association"
    try:
        return TERRAFORM_TYPES[node.provider][node.kind]
    except KeyError as e:
        raise ValueError(f"No Terraform resource type for {node.provider.value} {node.kind.value}") from e


class NetworkTerraformGenerator:
    """Generate Terraform configs from network intents"""

    def __init__(
        self,
        intent_path: str,
        output_dir: str,
        templates_dir: Optional[str] = None,
        provider: Optional[str] = None,
    ):
        self.intent_path = Path(intent_path)
        self.output_dir = Path(output_dir)
        self.templates_dir = Path(templates_dir or DEFAULT_TEMPLATES_DIR) / "terraform"
        self.provider = provider
        self.intents: List[NetworkIntent] = []
        self.results: List[PlanResult] = []
        self.generated_dirs: List[Path] = []
        self.run_fmt = True

        self.jinja_env = Environment(
            loader=FileSystemLoader(str(self.templates_dir)),
            trim_blocks=True,
            lstrip_blocks=True,
            keep_trailing_newline=True,
        )
        self.jinja_env.filters['hcl'] = lambda value: hcl_value(value, self._unresolved)

    @staticmethod
    def _unresolved(reference: Reference) -> str:
        raise ValueError(f"Unresolved reference to '{reference.target}' in template value")

    def load_intent(self) -> bool:
        """Load intent YAML file (with !include support)"""
        try:
            self.intents, warnings = load_and_validate_intents(self.intent_path, self.provider)
            print(f"OK Loaded intent: {self.intent_path} ({len(self.intents)} network(s))")
            for warning in warnings:
                print(f"WARN  {warning}")
            return True
        except ValueError as e:
            print(f"ERROR {e}")
            return False
        except FileNotFoundError as e:
            print(f"ERROR {e}")
            return False
        except yaml.YAMLError as e:
            print(f"ERROR YAML parse error: {e}")
            return False

    def plan(self) -> bool:
        """Plan every loaded intent, reporting violations"""
        success = True
        self.results = []
        for intent in self.intents:
            try:
                result = plan_network(intent)
            except NetworkError as e:
                print(f"ERROR {intent.name_prefix}: internal planning error")
                for violation in e.violations:
                    print(f"  - {violation}")
                success = False
                continue

            if not result.ok:
                print(f"ERROR {intent.name_prefix}: {len(result.violations)} violation(s)")
                for violation in result.violations:
                    print(f"  - {violation}")
                success = False
                continue

            for warning in result.contract.warnings:
                print(f"WARN  {intent.name_prefix}: {warning}")
            print(f"OK Planned {intent.name_prefix} ({intent.provider.value}): {len(result.resources)} resources")
            self.results.append(result)
        return success

    def _network_dir(self, result: PlanResult) -> Path:
        if len(self.intents) == 1:
            return self.output_dir
        return self.output_dir / result.intent.name_prefix

    def generate_all(self) -> bool:
        """Generate all Terraform files"""
        if prepare_output_directory(self.output_dir):
            print(f"CLEAN Cleaning output directory: {self.output_dir}")

        print(f"DIR Created output directory: {self.output_dir}")

        success = True
        self.generated_dirs = []
        for result in self.results:
            network_dir = self._network_dir(result)
            network_dir.mkdir(parents=True, exist_ok=True)
            self.generated_dirs.append(network_dir)

            try:
                context = self.build_context(result)
            except ValueError as e:
                print(f"ERROR Cannot render {result.intent.name_prefix}: {e}")
                success = False
                continue
            success &= self.generate_file('versions.tf.j2', network_dir / 'versions.tf', context)
            success &= self.generate_file('main.tf.j2', network_dir / 'main.tf', context)
            success &= self.generate_file('outputs.tf.j2', network_dir / 'outputs.tf', context)
            success &= self.generate_json(network_dir / 'plan.json', [node.to_dict() for node in result.resources])
            success &= self.generate_json(network_dir / 'contract.json', result.contract.to_dict())

        if self.run_fmt:
            success &= self.run_terraform_fmt()

        return success

    def build_context(self, result: PlanResult) -> Dict[str, Any]:
        """Template context for one planned network."""
        topology = result.topology
        contract = result.contract

        def address(name: str) -> str:
            node = topology.node(name)
            return f"{terraform_type(node)}.{local_name(node.name)}"

        def resolve(reference: Reference) -> str:
            node = topology.node(reference.target)
            if node is None or node.virtual:
                raise ValueError(f"Reference to unrenderable node '{reference.target}'")
            return f"{address(reference.target)}.{reference.attribute}"

        resources = []
        addresses: Dict[str, str] = {}
        for node in result.resources:
            if node.virtual:
                continue
            rendered = address(node.name)
            if rendered in addresses:
                raise ValueError(f"Resources '{addresses[rendered]}' and '{node.name}' both render as {rendered}")
            addresses[rendered] = node.name
            referenced = {reference.target for reference in find_references(node.attributes)}
            explicit = [
                address(dependency)
                for dependency in node.depends_on
                if dependency not in referenced and not topology.node(dependency).virtual
            ]
            resources.append({
                'type': terraform_type(node),
                'local_name': local_name(node.name),
                'kind': node.kind.value,
                'body': "\n".join(render_body(node.attributes, resolve)),
                'depends_on': explicit,
            })

        def ids(refs) -> List[str]:
            return [f"{address(ref.split('.', 1)[1])}.id" for ref in refs]

        outputs = [
            {'name': 'vpc_id', 'description': 'VPC identifier', 'value': ids([contract.vpc_id])[0]},
            {'name': 'vpc_cidr', 'description': 'VPC address range', 'value': hcl_value(contract.vpc_cidr, resolve)},
            {'name': 'subnet_ids', 'description': 'Subnet identifiers in index order', 'value': _list(ids(contract.subnet_ids))},
            {'name': 'public_subnet_ids', 'description': 'Public subnet identifiers', 'value': _list(ids(contract.public_subnet_ids))},
            {'name': 'private_subnet_ids', 'description': 'Private subnet identifiers', 'value': _list(ids(contract.private_subnet_ids))},
        ]

        return {
            'version': __version__,
            'intent': result.intent,
            'provider': result.intent.provider.value,
            'provider_source': PROVIDER_SOURCES[result.intent.provider],
            'resources': resources,
            'outputs': outputs,
            'k8s': contract.k8s_network_config,
            'contract': contract,
        }

    def generate_file(self, template_name: str, output_file: Path, context: Dict[str, Any]) -> bool:
        """Generate a single Terraform file from template"""
        try:
            template = self.jinja_env.get_template(template_name)
            content = template.render(**context)
            output_file.write_text(content, encoding="utf-8")
            print(f"OK Generated: {output_file}")
            return True

        except Exception as e:
            print(f"ERROR Error generating {output_file.name}: {e}")
            return False

    def generate_json(self, output_file: Path, payload: Any) -> bool:
        try:
            output_file.write_text(json.dumps(payload, indent=2) + "\n", encoding="utf-8")
            print(f"OK Generated: {output_file}")
            return True
        except (OSError, TypeError, ValueError) as e:
            print(f"ERROR Error generating {output_file.name}: {e}")
            return False

    def run_terraform_fmt(self) -> bool:
        """Run terraform fmt to normalize file formatting"""
        try:
            result = subprocess.run(
                ["terraform", "fmt", "-recursive"],
                cwd=str(self.output_dir),
                capture_output=True,
                text=True,
            )
            if result.returncode == 0:
                formatted_files = result.stdout.strip().split('\n') if result.stdout.strip() else []
                if formatted_files and formatted_files[0]:
                    print(f"FMT Formatted {len(formatted_files)} files with terraform fmt")
                else:
                    print("FMT All files already formatted")
                return True
            print(f"WARN  terraform fmt returned non-zero: {result.stderr}")
            return True  # Non-fatal, files are still valid
        except FileNotFoundError:
            print("WARN  terraform not found in PATH, skipping fmt")
            return True
        except OSError as e:
            print(f"WARN  terraform fmt failed: {e}")
            return True

    def print_summary(self) -> None:
        """Print generation summary."""
        print("\n" + "=" * 70)
        print("Network Terraform Generation Summary")
        print("=" * 70)

        for result, network_dir in zip(self.results, self.generated_dirs):
            rendered = [node for node in result.resources if not node.virtual]
            contract = result.contract
            print(f"\nOK {result.intent.name_prefix} ({result.intent.provider.value}):")
            print(f"  - VPC: {contract.vpc_name} {contract.vpc_cidr}")
            print(f"  - {len(contract.subnet_ids)} subnets "
                  f"({len(contract.public_subnet_ids)} public, {len(contract.private_subnet_ids)} private)")
            print(f"  - {len(rendered)} Terraform resources")
            print(f"  - Output: {network_dir}")

        print(f"\nNext steps:")
        print(f"  1. Run: cd {self.output_dir} && terraform init")
        print(f"  2. Run: terraform plan")
        print(f"  3. Run: terraform apply")


def _list(items: List[str]) -> str:
    return "[" + ", ".join(items) + "]"
