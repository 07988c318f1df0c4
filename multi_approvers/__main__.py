from multi_approvers.cli import cli

cli(prog_name="multi-approvers")
