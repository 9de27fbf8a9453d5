"""Tests for Terraform rendering."""

import json

import pytest

from network_tools import Provider, ResourceKind, ResourceNode, plan_network
from network_tools.generators import Generator, NetworkTerraformGenerator
from network_tools.generators.terraform import main, terraform_type
from network_tools.generators.terraform.hcl import hcl_value, local_name, render_body
from network_tools.model import Reference

INTENT = """\
provider: {provider}
name_prefix: demo
enable_flow_logs: true
enable_service_endpoints: true
tags:
  team: platform
"""


def resolve(reference: Reference) -> str:
    return f"aws_vpc.{local_name(reference.target)}.{reference.attribute}"


def render(write_yaml, tmp_path, document):
    path = write_yaml("network.yaml", document)
    generator = NetworkTerraformGenerator(str(path), str(tmp_path / "out"))
    generator.run_fmt = False
    assert generator.load_intent()
    assert generator.plan()
    assert generator.generate_all()
    return generator


class TestHcl:
    """Tests for HCL value rendering."""

    def test_scalars(self) -> None:
        assert hcl_value(True, resolve) == "true"
        assert hcl_value(None, resolve) == "null"
        assert hcl_value(3, resolve) == "3"
        assert hcl_value('say "hi"', resolve) == '"say \\"hi\\""'

    def test_collections(self) -> None:
        assert hcl_value(["a", 1], resolve) == '["a", 1]'
        assert hcl_value({"Name": "x", "kubernetes.io/role/elb": "1"}, resolve) == (
            '{ Name = "x", "kubernetes.io/role/elb" = "1" }'
        )
        assert hcl_value({}, resolve) == "{}"

    def test_reference(self) -> None:
        assert hcl_value(Reference("demo-vpc"), resolve) == "aws_vpc.demo_vpc.id"

    def test_local_name(self) -> None:
        assert local_name("demo-nat-subnet-2") == "demo_nat_subnet_2"
        assert local_name("1st") == "r_1st"

    def test_blocks_after_arguments(self) -> None:
        lines = render_body(
            {
                "route": [{"cidr_block": "0.0.0.0/0"}, {"ipv6_cidr_block": "::/0"}],
                "vpc_id": Reference("demo-vpc"),
                "skipped": None,
            },
            resolve,
        )
        assert lines == [
            "  vpc_id = aws_vpc.demo_vpc.id",
            "",
            "  route {",
            '    cidr_block = "0.0.0.0/0"',
            "  }",
            "",
            "  route {",
            '    ipv6_cidr_block = "::/0"',
            "  }",
        ]

    def test_empty_block_list_is_an_argument(self) -> None:
        assert render_body({"ingress": []}, resolve) == ["  ingress = []"]


class TestTerraformType:
    def test_azure_nat_association(self) -> None:
        node = ResourceNode(
            ResourceKind.ROUTE_ASSOCIATION,
            Provider.AZURE,
            "assoc",
            attributes={"nat_gateway_id": Reference("nat")},
        )
        assert terraform_type(node) == "azurerm_subnet_nat_gateway_association"

    def test_unknown(self) -> None:
        node = ResourceNode(ResourceKind.LOG_SINK, Provider.GCP, "sink")
        with pytest.raises(ValueError):
            terraform_type(node)


class TestGenerator:
    """Tests for NetworkTerraformGenerator."""

    def test_protocol(self, tmp_path) -> None:
        generator = NetworkTerraformGenerator(str(tmp_path / "network.yaml"), str(tmp_path / "out"))
        assert isinstance(generator, Generator)

    def test_files(self, write_yaml, tmp_path, provider: str) -> None:
        render(write_yaml, tmp_path, INTENT.format(provider=provider))
        out = tmp_path / "out"
        for name in ("versions.tf", "main.tf", "outputs.tf", "plan.json", "contract.json"):
            assert (out / name).exists(), name

    def test_aws_main(self, write_yaml, tmp_path) -> None:
        render(write_yaml, tmp_path, INTENT.format(provider="aws"))
        main_tf = (tmp_path / "out" / "main.tf").read_text(encoding="utf-8")
        assert 'resource "aws_vpc" "demo_vpc" {' in main_tf
        assert "vpc_id = aws_vpc.demo_vpc.id" in main_tf
        assert "depends_on = [aws_internet_gateway.demo_igw]" in main_tf
        assert 'resource "aws_vpc_endpoint" "demo_vpce_s3" {' in main_tf
        assert main_tf.index('"aws_vpc" "demo_vpc"') < main_tf.index('"aws_subnet" "demo_subnet_0"')

    def test_virtual_nodes_not_rendered(self, write_yaml, tmp_path) -> None:
        generator = render(write_yaml, tmp_path, INTENT.format(provider="gcp"))
        main_tf = (tmp_path / "out" / "main.tf").read_text(encoding="utf-8")
        virtual = [node for node in generator.results[0].resources if node.virtual]
        assert virtual
        for node in virtual:
            assert f'"{local_name(node.name)}"' not in main_tf
        assert "google_compute_route" in main_tf
        assert "depends_on = [google_compute_router_nat.demo_nat_subnet_2]" in main_tf

    def test_azure_main(self, write_yaml, tmp_path) -> None:
        render(write_yaml, tmp_path, INTENT.format(provider="azure"))
        main_tf = (tmp_path / "out" / "main.tf").read_text(encoding="utf-8")
        assert 'resource "azurerm_subnet_nat_gateway_association" "demo_private_nat_assoc_subnet_2"' in main_tf
        assert "security_rule {" in main_tf
        assert "demo_private_egress" not in main_tf

    def test_plan_json_order(self, write_yaml, tmp_path) -> None:
        render(write_yaml, tmp_path, INTENT.format(provider="aws"))
        plan = json.loads((tmp_path / "out" / "plan.json").read_text(encoding="utf-8"))
        position = {node["name"]: index for index, node in enumerate(plan)}
        assert plan[0]["name"] == "demo-vpc"
        for node in plan:
            for dependency in node["depends_on"]:
                assert position[dependency] < position[node["name"]]

    def test_outputs(self, write_yaml, tmp_path) -> None:
        render(write_yaml, tmp_path, INTENT.format(provider="aws"))
        outputs_tf = (tmp_path / "out" / "outputs.tf").read_text(encoding="utf-8")
        assert "value       = aws_vpc.demo_vpc.id" in outputs_tf
        assert "aws_subnet.demo_subnet_2.id, aws_subnet.demo_subnet_3.id" in outputs_tf
        assert 'pod_cidr                        = "10.0.16.0/24"' in outputs_tf

        contract = json.loads((tmp_path / "out" / "contract.json").read_text(encoding="utf-8"))
        assert contract["private_subnet_ids"] == ["subnet.demo-subnet-2", "subnet.demo-subnet-3"]

    def test_versions(self, write_yaml, tmp_path) -> None:
        render(write_yaml, tmp_path, INTENT.format(provider="gcp"))
        versions_tf = (tmp_path / "out" / "versions.tf").read_text(encoding="utf-8")
        assert 'source  = "hashicorp/google"' in versions_tf
        assert 'region  = "us-central1"' in versions_tf

    def test_bundle_gets_one_directory_per_network(self, write_yaml, tmp_path) -> None:
        document = (
            "defaults:\n  provider: aws\n"
            "networks:\n  - name_prefix: core\n  - name_prefix: edge\n    provider: azure\n"
        )
        render(write_yaml, tmp_path, document)
        assert (tmp_path / "out" / "core" / "main.tf").exists()
        assert (tmp_path / "out" / "edge" / "main.tf").exists()

    def test_output_directory_is_recreated(self, write_yaml, tmp_path) -> None:
        stale = tmp_path / "out" / "stale.tf"
        stale.parent.mkdir()
        stale.write_text("", encoding="utf-8")
        render(write_yaml, tmp_path, INTENT.format(provider="aws"))
        assert not stale.exists()

    def test_plan_failure(self, write_yaml, tmp_path) -> None:
        path = write_yaml("network.yaml", "provider: aws\nname_prefix: demo\nprivate_subnet_indices: [1, 2]\n")
        generator = NetworkTerraformGenerator(str(path), str(tmp_path / "out"))
        assert generator.load_intent()
        assert not generator.plan()

    def test_terraform_name_collision(self, intent_factory, tmp_path) -> None:
        """Names that differ only in separators would render one resource twice."""
        result = plan_network(intent_factory(subnet_names=("a-b", "a_b", "c", "d")))
        assert result.ok
        generator = NetworkTerraformGenerator(str(tmp_path / "network.yaml"), str(tmp_path / "out"))
        with pytest.raises(ValueError, match="both render as aws_subnet.demo_a_b"):
            generator.build_context(result)

    def test_duplicate_prefixes_rejected(self, write_yaml, tmp_path) -> None:
        path = write_yaml("network.yaml", "networks:\n  - {provider: aws, name_prefix: a}\n  - {provider: gcp, name_prefix: a}\n")
        generator = NetworkTerraformGenerator(str(path), str(tmp_path / "out"))
        assert not generator.load_intent()


class TestCli:
    """Tests for the generator entry point."""

    def test_main(self, write_yaml, tmp_path, capsys) -> None:
        path = write_yaml("network.yaml", INTENT.format(provider="aws"))
        code = main(["--intent", str(path), "--output", str(tmp_path / "out"), "--skip-fmt"])
        assert code == 0
        assert (tmp_path / "out" / "main.tf").exists()
        assert "Network Terraform generation completed successfully!" in capsys.readouterr().out

    def test_main_failure(self, tmp_path) -> None:
        code = main(["--intent", str(tmp_path / "absent.yaml"), "--output", str(tmp_path / "out"), "--skip-fmt"])
        assert code == 1

    def test_provider_override(self, write_yaml, tmp_path) -> None:
        path = write_yaml("network.yaml", INTENT.format(provider="aws"))
        code = main([
            "--intent", str(path),
            "--output", str(tmp_path / "out"),
            "--provider", "gcp",
            "--skip-fmt",
        ])
        assert code == 0
        assert "google_compute_network" in (tmp_path / "out" / "main.tf").read_text(encoding="utf-8")
