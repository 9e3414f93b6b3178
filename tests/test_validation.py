"""
Unit tests for configuration validation and subnet CIDR arithmetic
"""

import unittest
from types import SimpleNamespace
import sys
import os

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from modules.vpc.functions import subnet_cidr, subnet_cidrs
from validation import (
    ConfigValidationError,
    cidrs_overlap,
    is_subnet_of,
    is_valid_cidr,
    selector_matches,
    validate_config,
    validate_scaling,
    validate_subnet_cidrs,
)


def make_config(**overrides):
    values = dict(
        cluster_name="eks-cluster",
        use_existing_role=False,
        existing_role_name="",
        vpc_cidr="10.0.0.0/16",
        public_subnet_cidrs=["10.0.0.0/24", "10.0.1.0/24"],
        node_min_size=1,
        node_desired_size=2,
        node_max_size=3,
        node_instance_types=["t3.medium"],
        service_type="LoadBalancer",
        container_port=80,
        service_port=80,
        app_name="nginx",
        app_labels={"app": "nginx"},
        app_selector={"app": "nginx"},
    )
    values.update(overrides)
    return SimpleNamespace(**values)


class TestSubnetCidr(unittest.TestCase):

    def test_two_slash_24_subnets_from_slash_16(self):
        self.assertEqual(subnet_cidrs("10.0.0.0/16", 2, 8), ["10.0.0.0/24", "10.0.1.0/24"])

    def test_matches_cidrsubnet(self):
        self.assertEqual(subnet_cidr("10.0.0.0/16", 8, 255), "10.0.255.0/24")
        self.assertEqual(subnet_cidr("10.0.0.0/16", 4, 1), "10.0.16.0/20")
        self.assertEqual(subnet_cidr("172.16.0.0/12", 4, 2), "172.18.0.0/16")

    def test_out_of_range(self):
        with self.assertRaises(ValueError):
            subnet_cidr("10.0.0.0/16", 8, 256)
        with self.assertRaises(ValueError):
            subnet_cidr("10.0.0.0/28", 8, 0)
        with self.assertRaises(ValueError):
            subnet_cidr("10.0.0.0/16", 0, 0)

    def test_derived_subnets_are_disjoint_and_inside_vpc(self):
        cidrs = subnet_cidrs("10.0.0.0/16", 6, 8)
        self.assertEqual(validate_subnet_cidrs("10.0.0.0/16", cidrs), [])


class TestCidrChecks(unittest.TestCase):

    def test_is_valid_cidr(self):
        self.assertEqual(is_valid_cidr("10.0.0.0/16"), (True, None))
        valid, err = is_valid_cidr("10.0.0.300/16")
        self.assertFalse(valid)
        self.assertTrue(err)
        self.assertFalse(is_valid_cidr("10.0.1.5/24")[0])

    def test_overlap(self):
        self.assertTrue(cidrs_overlap("10.0.0.0/24", "10.0.0.128/25"))
        self.assertFalse(cidrs_overlap("10.0.0.0/24", "10.0.1.0/24"))

    def test_subnet_must_be_strict_subset(self):
        self.assertTrue(is_subnet_of("10.0.1.0/24", "10.0.0.0/16"))
        self.assertFalse(is_subnet_of("10.0.0.0/16", "10.0.0.0/16"))
        self.assertFalse(is_subnet_of("10.1.0.0/24", "10.0.0.0/16"))

    def test_validate_subnet_cidrs_reports_each_problem(self):
        errors = validate_subnet_cidrs(
            "10.0.0.0/16",
            ["10.0.0.0/24", "10.0.0.128/25", "192.168.0.0/24", "bogus"]
        )
        fields = [e.field for e in errors]
        self.assertIn("public_subnet_cidrs[1]", fields)
        self.assertIn("public_subnet_cidrs[2]", fields)
        self.assertIn("public_subnet_cidrs[3]", fields)
        self.assertNotIn("public_subnet_cidrs[0]", fields)

    def test_empty_subnet_list(self):
        errors = validate_subnet_cidrs("10.0.0.0/16", [])
        self.assertEqual(errors[0].field, "public_subnet_cidrs")

    def test_one_subnet_is_not_enough(self):
        errors = validate_subnet_cidrs("10.0.0.0/16", ["10.0.0.0/24"])
        self.assertEqual([e.field for e in errors], ["public_subnet_cidrs"])


class TestScaling(unittest.TestCase):

    def test_valid_envelope(self):
        self.assertEqual(validate_scaling(1, 2, 3), [])
        self.assertEqual(validate_scaling(2, 2, 2), [])
        self.assertEqual(validate_scaling(0, 0, 1), [])

    def test_desired_outside_bounds(self):
        self.assertEqual(validate_scaling(1, 4, 3)[0].field, "node_desired_size")
        self.assertEqual(validate_scaling(3, 2, 5)[0].field, "node_desired_size")

    def test_negative_and_zero_max(self):
        fields = [e.field for e in validate_scaling(-1, 0, 0)]
        self.assertIn("node_min_size", fields)
        self.assertIn("node_max_size", fields)


class TestSelector(unittest.TestCase):

    def test_selector_equal_to_labels(self):
        self.assertTrue(selector_matches({"app": "nginx"}, {"app": "nginx"}))

    def test_selector_subset_of_labels(self):
        self.assertTrue(selector_matches({"app": "nginx"}, {"app": "nginx", "tier": "web"}))

    def test_mismatch_and_empty(self):
        self.assertFalse(selector_matches({"app": "web"}, {"app": "nginx"}))
        self.assertFalse(selector_matches({}, {"app": "nginx"}))


class TestValidateConfig(unittest.TestCase):

    def test_defaults_pass(self):
        validate_config(make_config())

    def test_collects_all_errors(self):
        cfg = make_config(
            cluster_name="",
            node_desired_size=9,
            service_type="ExternalName",
            service_port=70000,
            public_subnet_cidrs=["10.0.0.0/24", "10.0.0.0/24"],
        )
        with self.assertRaises(ConfigValidationError) as ctx:
            validate_config(cfg)

        fields = {e.field for e in ctx.exception.errors}
        self.assertEqual(
            fields,
            {"cluster_name", "node_desired_size", "service_type", "service_port", "public_subnet_cidrs[1]"}
        )
        self.assertIn("Configuration validation failed", str(ctx.exception))

    def test_existing_role_requires_name(self):
        with self.assertRaises(ConfigValidationError) as ctx:
            validate_config(make_config(use_existing_role=True))
        self.assertEqual(ctx.exception.errors[0].field, "existing_role_name")

    def test_single_subnet_is_rejected(self):
        with self.assertRaises(ConfigValidationError) as ctx:
            validate_config(make_config(public_subnet_cidrs=["10.0.0.0/24"]))
        self.assertEqual([e.field for e in ctx.exception.errors], ["public_subnet_cidrs"])

    def test_selector_must_match_app_labels(self):
        with self.assertRaises(ConfigValidationError) as ctx:
            validate_config(make_config(app_selector={"app": "web"}))
        self.assertEqual([e.field for e in ctx.exception.errors], ["app_selector"])

    def test_subset_selector_passes(self):
        validate_config(make_config(app_labels={"app": "nginx", "tier": "web"}, app_selector={"tier": "web"}))

    def test_subnet_derivation_error_is_reported(self):
        cfg = make_config(
            public_subnet_cidrs=[],
            subnet_newbits=8,
            subnet_cidr_error="Cannot derive 2 subnets from 10.0.0.0/28: new prefix /36 exceeds 32",
        )
        with self.assertRaises(ConfigValidationError) as ctx:
            validate_config(cfg)
        self.assertEqual([e.field for e in ctx.exception.errors], ["subnet_newbits"])
        self.assertIn("10.0.0.0/28", ctx.exception.errors[0].message)


if __name__ == "__main__":
    unittest.main()
