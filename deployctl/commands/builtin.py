"""Built-in command schema table.

Service commands work with any provider. Provider commands are tagged as
provider extensions, require a service, and get the provider-wide options
merged in by the registry.
"""

from typing import Any, Dict

PROVIDER_OPTIONS: Dict[str, Dict[str, Any]] = {
    "region": {"usage": "Region of the service", "shortcut": "r"},
    "stage": {"usage": "Stage of the service", "shortcut": "s"},
    "aws-profile": {"usage": "Provider credentials profile to use with the command"},
    "app": {"usage": "Dashboard app"},
    "org": {"usage": "Dashboard org"},
    "config": {"usage": "Path to the service description file", "shortcut": "c"},
    "param": {
        "usage": 'Pass custom parameter values for "param" variable source',
        "type": "multiple",
    },
}

SERVICE_COMMANDS: Dict[str, Dict[str, Any]] = {
    "package": {
        "usage": "Packages a service and all its functions",
        "serviceDependencyMode": "required",
        "options": {
            "package": {"usage": "Output path for the package", "shortcut": "p"},
            "stage": {"usage": "Stage of the service", "shortcut": "s"},
            "region": {"usage": "Region of the service", "shortcut": "r"},
        },
        "lifecycleEvents": [
            "cleanup",
            "initialize",
            "setupProviderConfiguration",
            "createDeploymentArtifacts",
            "compileLayers",
            "compileFunctions",
            "compileEvents",
            "finalize",
        ],
    },
    "print": {
        "usage": "Print your compiled and resolved config file",
        "serviceDependencyMode": "required",
        "options": {
            "format": {"usage": "Print configuration in given format ('yaml', 'json')"},
            "path": {"usage": "Optional period-separated path to print a sub-value"},
        },
        "lifecycleEvents": ["print"],
    },
    "plugin list": {
        "usage": "Lists all available plugins",
        "lifecycleEvents": ["list"],
    },
}

AWS_SERVICE_COMMANDS: Dict[str, Dict[str, Any]] = {
    "deploy": {
        "usage": "Deploy a service",
        "options": {
            "conceal": {
                "usage": "Hide secrets from the output (e.g. API Gateway key values)",
                "type": "boolean",
            },
            "package": {"usage": "Path of the deployment package", "shortcut": "p"},
            "verbose": {
                "usage": "Show all stack events during deployment",
                "shortcut": "v",
                "type": "boolean",
            },
            "force": {"usage": "Forces a deployment to take place", "type": "boolean"},
            "function": {
                "usage": "Function name. Deploys a single function. "
                "DEPRECATED: use 'deploy function' instead.",
                "shortcut": "f",
            },
            "aws-s3-accelerate": {
                "usage": "Enables S3 Transfer Acceleration making uploading artifacts much faster.",
                "type": "boolean",
            },
        },
        # Pre-split events now live under "package"
        "lifecycleEvents": [
            "deprecated#cleanup->package:cleanup",
            "deprecated#initialize->package:initialize",
            "deprecated#setupProviderConfiguration->package:setupProviderConfiguration",
            "deprecated#createDeploymentArtifacts->package:createDeploymentArtifacts",
            "deprecated#compileFunctions->package:compileFunctions",
            "deprecated#compileEvents->package:compileEvents",
            "deploy",
            "finalize",
        ],
        "mainProgressTitles": [
            ("before:package:cleanup", "Packaging"),
            ("before:aws:deploy:deploy:createStack", "Retrieving CloudFormation stack info"),
            ("before:aws:deploy:deploy:checkForChanges", "Retrieving CloudFormation stack info"),
            ("before:aws:deploy:deploy:uploadArtifacts", "Uploading"),
            ("before:aws:deploy:deploy:validateTemplate", "Updating CloudFormation stack"),
            ("before:aws:info:validate", "Retrieving CloudFormation stack info"),
            ("before:deploy:deploy", "Validating deployment"),
            ("after:deploy:deploy", "Updating"),
        ],
    },
    "deploy function": {
        "usage": "Deploy a single function from the service",
        "options": {
            "function": {"usage": "Name of the function", "shortcut": "f", "required": True},
            "force": {"usage": "Forces a deployment to take place", "type": "boolean"},
            "update-config": {
                "usage": "Updates function configuration, e.g. Timeout or Memory Size "
                "without deploying code",
                "shortcut": "u",
                "type": "boolean",
            },
        },
        "lifecycleEvents": ["initialize", "packageFunction", "deploy"],
    },
    "deploy list": {
        "usage": "List deployed version of your Serverless Service",
        "lifecycleEvents": ["log"],
    },
    "deploy list functions": {
        "usage": "List all the deployed functions and their versions",
        "lifecycleEvents": ["log"],
    },
    "info": {
        "usage": "Display information about the service",
        "options": {
            "conceal": {
                "usage": "Hide secrets from the output (e.g. API Gateway key values)",
                "type": "boolean",
            },
            "verbose": {"usage": "List stack outputs", "shortcut": "v", "type": "boolean"},
        },
        "lifecycleEvents": ["info"],
    },
    "invoke": {
        "usage": "Invoke a deployed function",
        "options": {
            "function": {"usage": "The function name", "required": True, "shortcut": "f"},
            "qualifier": {"usage": "Version number or alias to invoke", "shortcut": "q"},
            "path": {"usage": "Path to JSON or YAML file holding input data", "shortcut": "p"},
            "type": {"usage": "Type of invocation", "shortcut": "t"},
            "log": {"usage": "Trigger logging data output", "shortcut": "l", "type": "boolean"},
            "data": {"usage": "Input data", "shortcut": "d"},
            "raw": {"usage": "Flag to pass input data as a raw string", "type": "boolean"},
            "context": {"usage": "Context of the service"},
            "contextPath": {"usage": "Path to JSON or YAML file holding context data"},
        },
        "lifecycleEvents": ["invoke"],
    },
    "invoke local": {
        "usage": "Invoke function locally",
        "options": {
            "function": {"usage": "Name of the function", "shortcut": "f", "required": True},
            "path": {"usage": "Path to JSON or YAML file holding input data", "shortcut": "p"},
            "data": {"usage": "input data", "shortcut": "d"},
            "raw": {"usage": "Flag to pass input data as a raw string", "type": "boolean"},
            "context": {"usage": "Context of the service"},
            "contextPath": {
                "usage": "Path to JSON or YAML file holding context data",
                "shortcut": "x",
            },
            "env": {
                "usage": "Override environment variables. e.g. --env VAR1=val1 --env VAR2=val2",
                "shortcut": "e",
                "type": "multiple",
            },
            "docker": {
                "usage": "Flag to turn on docker use for node/python/ruby/java",
                "type": "boolean",
            },
            "docker-arg": {
                "usage": 'Arguments to docker run command. e.g. --docker-arg "-p 9229:9229"',
            },
        },
        "lifecycleEvents": ["loadEnvVars", "invoke"],
    },
    "logs": {
        "usage": "Output the logs of a deployed function",
        "options": {
            "function": {"usage": "The function name", "required": True, "shortcut": "f"},
            "tail": {"usage": "Tail the log output", "shortcut": "t", "type": "boolean"},
            "startTime": {
                "usage": "Logs before this time will not be displayed. "
                "Default: `10m` (last 10 minutes logs only)",
            },
            "filter": {"usage": "A filter pattern"},
            "interval": {
                "usage": "Tail polling interval in milliseconds. Default: `1000`",
                "shortcut": "i",
            },
        },
        "lifecycleEvents": ["logs"],
    },
    "metrics": {
        "usage": "Show metrics for a specific function",
        "options": {
            "function": {"usage": "The function name", "shortcut": "f"},
            "startTime": {"usage": "Start time for the metrics retrieval (e.g. 1970-01-01)"},
            "endTime": {"usage": "End time for the metrics retrieval (e.g. 1970-01-01)"},
        },
        "lifecycleEvents": ["metrics"],
    },
    "remove": {
        "usage": "Remove the service and all resources",
        "options": {
            "verbose": {
                "usage": "Show all stack events during deployment",
                "shortcut": "v",
                "type": "boolean",
            },
        },
        "lifecycleEvents": ["remove"],
    },
    "rollback": {
        "usage": "Rollback the service to a specific deployment",
        "options": {
            "timestamp": {
                "usage": "Timestamp of the deployment (list deployments with `deploy list`)",
                "shortcut": "t",
                "required": False,
            },
            "verbose": {
                "usage": "Show all stack events during deployment",
                "shortcut": "v",
                "type": "boolean",
            },
        },
        "lifecycleEvents": ["initialize", "rollback"],
    },
    "rollback function": {
        "usage": "Rollback the function to the previous version",
        "options": {
            "function": {"usage": "Name of the function", "shortcut": "f", "required": True},
            "function-version": {"usage": "Version of the function", "required": True},
        },
        "lifecycleEvents": ["rollback"],
    },
    "test": {
        "usage": "Run HTTP tests",
        "options": {
            "function": {"usage": "Specify the function to test", "shortcut": "f"},
            "test": {"usage": "Specify a specific test to run", "shortcut": "t"},
        },
        "lifecycleEvents": ["test"],
    },
}

for _schema in AWS_SERVICE_COMMANDS.values():
    _schema["serviceDependencyMode"] = "required"
    _schema["hasProviderExtension"] = True

BUILTIN_COMMANDS: Dict[str, Dict[str, Any]] = {**AWS_SERVICE_COMMANDS, **SERVICE_COMMANDS}
