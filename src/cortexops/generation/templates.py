"""Playbook templates.

Each render function maps a ``TemplateParams`` record to playbook
text. Templates build plain data and serialize it through
``dump_documents`` so every rendered playbook is well-formed by
construction.
"""

from __future__ import annotations

from typing import Any

from cortexops.constants import Feature
from cortexops.documents.yaml_io import dump_documents
from cortexops.generation.params import TemplateParams

type Tasks = list[dict[str, Any]]


def _header(title: str, params: TemplateParams) -> str:
    return (
        f"# {title}\n"
        f"# Project: {params.project_name}\n"
        f"# Environment: {params.environment}\n"
        f"# Tier: {params.tier}\n"
    )


def _render(title: str, params: TemplateParams, documents: list[Any]) -> str:
    # Header goes after the first "---" so the stream still opens with it
    start, _, body = dump_documents(documents).partition("\n")
    return f"{start}\n{_header(title, params)}{body}"


def _apt(name: str | list[str], **extra: Any) -> dict[str, Any]:
    return {"apt": {"name": name, "state": "present", "update_cache": True, **extra}}


def _service(name: str, state: str = "started") -> dict[str, Any]:
    return {"service": {"name": name, "state": state, "enabled": True}}


def _restart_handler(service: str) -> dict[str, Any]:
    return {
        "name": f"restart {service}",
        "service": {"name": service, "state": "restarted"},
    }


# ── Basic service recipes ────────────────────────────────


def _nginx_recipe(params: TemplateParams) -> tuple[dict[str, Any], Tasks, Tasks]:
    tasks: Tasks = [
        {"name": "Install nginx", **_apt("nginx")},
        {"name": "Start and enable nginx", **_service("nginx")},
        {
            "name": "Configure the default virtual host",
            "copy": {
                "dest": "/etc/nginx/sites-available/default",
                "content": (
                    "server {\n"
                    "  listen {{ http_port }};\n"
                    "  server_name {{ domain_name }};\n"
                    "  root /var/www/html;\n"
                    "}\n"
                ),
                "mode": "0644",
            },
            "notify": "restart nginx",
        },
        {
            "name": "Check the nginx configuration",
            "command": "nginx -t",
            "changed_when": False,
        },
        {
            "name": "Wait for nginx to listen",
            "wait_for": {"port": "{{ http_port }}", "timeout": 10},
        },
    ]
    variables = {"domain_name": params.domain, "http_port": params.port}
    return variables, tasks, [_restart_handler("nginx")]


def _nginx_ssl_recipe(params: TemplateParams) -> tuple[dict[str, Any], Tasks, Tasks]:
    variables = {
        "domain_name": params.domain,
        "ssl_path": "/etc/nginx/ssl",
        "cert_file": "{{ ssl_path }}/{{ domain_name }}.crt",
        "key_file": "{{ ssl_path }}/{{ domain_name }}.key",
    }
    tasks: Tasks = [
        {"name": "Install nginx and SSL tooling", **_apt(["nginx", "openssl"])},
        {
            "name": "Create the certificate directory",
            "file": {"path": "{{ ssl_path }}", "state": "directory", "mode": "0700"},
        },
        {
            "name": "Generate a self-signed certificate",
            "command": (
                "openssl req -x509 -nodes -days 365 -newkey rsa:2048 "
                "-keyout {{ key_file }} -out {{ cert_file }} "
                "-subj /CN={{ domain_name }}"
            ),
            "args": {"creates": "{{ cert_file }}"},
        },
        {
            "name": "Configure the HTTPS virtual host",
            "copy": {
                "dest": "/etc/nginx/sites-available/default",
                "content": (
                    "server {\n"
                    "  listen 443 ssl;\n"
                    "  server_name {{ domain_name }};\n"
                    "  ssl_certificate {{ cert_file }};\n"
                    "  ssl_certificate_key {{ key_file }};\n"
                    "  root /var/www/html;\n"
                    "}\n"
                ),
                "mode": "0644",
            },
            "notify": "restart nginx",
        },
        {"name": "Start and enable nginx", **_service("nginx")},
    ]
    return variables, tasks, [_restart_handler("nginx")]


def _postgresql_recipe(params: TemplateParams) -> tuple[dict[str, Any], Tasks, Tasks]:
    tasks: Tasks = [
        {
            "name": "Install PostgreSQL",
            **_apt(["postgresql", "postgresql-contrib", "python3-psycopg2"]),
        },
        {"name": "Start and enable PostgreSQL", **_service("postgresql")},
        {
            "name": "Create the application database",
            "become_user": "postgres",
            "community.postgresql.postgresql_db": {"name": "{{ db_name }}"},
        },
    ]
    return {"db_name": params.app_name}, tasks, [_restart_handler("postgresql")]


def _mysql_recipe(params: TemplateParams) -> tuple[dict[str, Any], Tasks, Tasks]:
    tasks: Tasks = [
        {"name": "Install MySQL", **_apt(["mysql-server", "python3-pymysql"])},
        {"name": "Start and enable MySQL", **_service("mysql")},
        {
            "name": "Create the application database",
            "community.mysql.mysql_db": {
                "name": "{{ db_name }}",
                "login_unix_socket": "/run/mysqld/mysqld.sock",
            },
        },
    ]
    return {"db_name": params.app_name}, tasks, [_restart_handler("mysql")]


def _docker_recipe(params: TemplateParams) -> tuple[dict[str, Any], Tasks, Tasks]:
    tasks: Tasks = [
        {"name": "Install Docker", **_apt(["docker.io", "docker-compose-v2"])},
        {"name": "Start and enable Docker", **_service("docker")},
        {
            "name": "Add the deploy user to the docker group",
            "user": {"name": "{{ ansible_user }}", "groups": "docker", "append": True},
        },
    ]
    return {}, tasks, []


def _nodejs_recipe(params: TemplateParams) -> tuple[dict[str, Any], Tasks, Tasks]:
    tasks: Tasks = [
        {"name": "Install Node.js", **_apt(["nodejs", "npm"])},
        {
            "name": "Create the application directory",
            "file": {"path": "/opt/{{ app_name }}", "state": "directory"},
        },
        {
            "name": "Install application dependencies",
            "community.general.npm": {"path": "/opt/{{ app_name }}", "production": True},
        },
    ]
    variables = {"app_name": params.app_name, "node_version": params.node_version}
    return variables, tasks, []


def _python_recipe(params: TemplateParams) -> tuple[dict[str, Any], Tasks, Tasks]:
    tasks: Tasks = [
        {"name": "Install Python", **_apt(["python3", "python3-venv", "python3-pip"])},
        {
            "name": "Create the application virtualenv",
            "command": "python3 -m venv /opt/{{ app_name }}/venv",
            "args": {"creates": "/opt/{{ app_name }}/venv"},
        },
    ]
    variables = {"app_name": params.app_name, "python_version": params.python_version}
    return variables, tasks, []


def _redis_recipe(params: TemplateParams) -> tuple[dict[str, Any], Tasks, Tasks]:
    tasks: Tasks = [
        {"name": "Install Redis", **_apt("redis-server")},
        {
            "name": "Bind Redis to localhost",
            "lineinfile": {
                "path": "/etc/redis/redis.conf",
                "regexp": "^bind ",
                "line": "bind 127.0.0.1 ::1",
            },
            "notify": "restart redis-server",
        },
        {"name": "Start and enable Redis", **_service("redis-server")},
    ]
    return {}, tasks, [_restart_handler("redis-server")]


def _generic_recipe(params: TemplateParams) -> tuple[dict[str, Any], Tasks, Tasks]:
    tasks: Tasks = [
        {"name": "Update the package cache", "apt": {"update_cache": True}},
        {"name": "Install base packages", **_apt(["curl", "ca-certificates"])},
    ]
    return {}, tasks, []


BASIC_RECIPES = {
    "nginx": _nginx_recipe,
    "nginx_ssl": _nginx_ssl_recipe,
    "postgresql": _postgresql_recipe,
    "mysql": _mysql_recipe,
    "docker": _docker_recipe,
    "nodejs": _nodejs_recipe,
    "python": _python_recipe,
    "redis": _redis_recipe,
    "generic": _generic_recipe,
}


def render_basic(params: TemplateParams) -> str:
    """One play, one service, no roles."""
    recipe = BASIC_RECIPES.get(params.recipe, _generic_recipe)
    variables, tasks, handlers = recipe(params)
    play: dict[str, Any] = {
        "name": f"Configure {params.recipe}",
        "hosts": params.hosts,
        "become": True,
    }
    if variables:
        play["vars"] = variables
    play["tasks"] = tasks
    if handlers:
        play["handlers"] = handlers
    return _render(f"{params.project_name} - basic playbook", params, [[play]])


# ── Role-based conventional hosts ────────────────────────


def _validation_tasks() -> Tasks:
    return [
        {
            "name": "Check free disk space",
            "assert": {
                "that": ["ansible_mounts | map(attribute='size_available') | min > 1073741824"],
                "fail_msg": "Less than 1 GiB free on a mount",
            },
        },
    ]


def _reporting_tasks(params: TemplateParams) -> Tasks:
    return [
        {
            "name": "Write the deployment report",
            "copy": {
                "dest": "/var/log/ansible_{{ project_name }}.log",
                "content": (
                    "Deployed {{ project_name }} to {{ inventory_hostname }} "
                    "at {{ ansible_date_time.iso8601 }}\n"
                ),
                "mode": "0644",
            },
        },
    ]


def _monitoring_play(params: TemplateParams) -> dict[str, Any]:
    return {
        "name": "Install monitoring agents",
        "hosts": params.hosts,
        "become": True,
        "tasks": [
            {"name": "Install the Prometheus node exporter", **_apt("prometheus-node-exporter")},
            {"name": "Start the node exporter", **_service("prometheus-node-exporter")},
        ],
    }


def render_role_based(params: TemplateParams) -> str:
    """Role-based playbook; tier features add validation and reporting."""
    roles = list(params.roles) or ["common", "security"]
    play: dict[str, Any] = {
        "name": f"Deploy {params.project_name}",
        "hosts": params.hosts,
        "become": True,
        "vars": {
            "project_name": params.project_name,
            "app_environment": str(params.environment),
        },
    }
    if params.has(Feature.MULTISERVER):
        play["serial"] = "30%"
    if params.has(Feature.VALIDATION):
        play["pre_tasks"] = _validation_tasks()
    play["roles"] = roles
    if params.has(Feature.REPORTING):
        play["post_tasks"] = _reporting_tasks(params)

    documents: list[Any] = [[play]]
    if params.has(Feature.MONITORING):
        documents.append([_monitoring_play(params)])
    return _render(f"{params.project_name} - {params.tier} playbook", params, documents)


def render_generic_host(params: TemplateParams) -> str:
    """Baseline hardening when nothing more specific matched."""
    play = {
        "name": "Baseline server configuration",
        "hosts": params.hosts,
        "become": True,
        "tasks": [
            {"name": "Upgrade installed packages", "apt": {"upgrade": "dist", "update_cache": True}},
            {"name": "Install the firewall", **_apt("ufw")},
            {"name": "Allow SSH", "community.general.ufw": {"rule": "allow", "name": "OpenSSH"}},
            {"name": "Enable the firewall", "community.general.ufw": {"state": "enabled"}},
        ],
    }
    return _render("Baseline server configuration", params, [[play]])


# ── Other contexts ───────────────────────────────────────


def render_container_simple(params: TemplateParams) -> str:
    play = {
        "name": f"Deploy {params.app_name} with Docker Compose",
        "hosts": params.hosts,
        "become": True,
        "vars": {"compose_dir": f"/opt/{params.app_name}"},
        "tasks": [
            {"name": "Install Docker", **_apt(["docker.io", "docker-compose-v2"])},
            {
                "name": "Create the compose directory",
                "file": {"path": "{{ compose_dir }}", "state": "directory"},
            },
            {
                "name": "Render the compose file",
                "copy": {
                    "dest": "{{ compose_dir }}/compose.yml",
                    "content": (
                        "services:\n"
                        f"  {params.app_name}:\n"
                        f"    image: {params.app_name}:latest\n"
                        "    restart: unless-stopped\n"
                        "    ports:\n"
                        f"      - \"{params.port}:{params.port}\"\n"
                    ),
                },
            },
            {
                "name": "Start the stack",
                "community.docker.docker_compose_v2": {
                    "project_src": "{{ compose_dir }}",
                    "state": "present",
                },
            },
        ],
    }
    return _render(f"{params.app_name} - Docker Compose", params, [[play]])


def _k8s_tasks(params: TemplateParams) -> Tasks:
    namespace = "{{ namespace }}"
    tasks: Tasks = [
        {
            "name": "Create the namespace",
            "kubernetes.core.k8s": {
                "api_version": "v1",
                "kind": "Namespace",
                "name": namespace,
                "state": "present",
            },
        },
        {
            "name": "Deploy the application",
            "kubernetes.core.k8s": {
                "state": "present",
                "namespace": namespace,
                "definition": {
                    "apiVersion": "apps/v1",
                    "kind": "Deployment",
                    "metadata": {"name": "{{ app_name }}"},
                    "spec": {
                        "replicas": "{{ replicas }}",
                        "selector": {"matchLabels": {"app": "{{ app_name }}"}},
                        "template": {
                            "metadata": {"labels": {"app": "{{ app_name }}"}},
                            "spec": {
                                "containers": [
                                    {
                                        "name": "{{ app_name }}",
                                        "image": "{{ image }}",
                                        "ports": [{"containerPort": params.port}],
                                    }
                                ]
                            },
                        },
                    },
                },
            },
        },
        {
            "name": "Expose the application",
            "kubernetes.core.k8s": {
                "state": "present",
                "namespace": namespace,
                "definition": {
                    "apiVersion": "v1",
                    "kind": "Service",
                    "metadata": {"name": "{{ app_name }}"},
                    "spec": {
                        "selector": {"app": "{{ app_name }}"},
                        "ports": [{"port": params.port}],
                    },
                },
            },
        },
    ]
    if params.has(Feature.MONITORING):
        tasks.append({
            "name": "Install the Prometheus stack",
            "kubernetes.core.helm": {
                "name": "monitoring",
                "chart_ref": "prometheus-community/kube-prometheus-stack",
                "release_namespace": "monitoring",
                "create_namespace": True,
            },
        })
    if params.has(Feature.VALIDATION):
        tasks.append({
            "name": "Wait for the rollout",
            "kubernetes.core.k8s_info": {
                "kind": "Deployment",
                "name": "{{ app_name }}",
                "namespace": namespace,
                "wait": True,
                "wait_condition": {"type": "Available", "status": "True"},
            },
        })
    return tasks


def _k8s_vars(params: TemplateParams) -> dict[str, Any]:
    return {
        "app_name": params.app_name,
        "namespace": f"{params.app_name}-{params.environment}",
        "image": f"{params.app_name}:latest",
        "replicas": 3 if params.has(Feature.MULTISERVER) else 1,
    }


def render_kubernetes(params: TemplateParams) -> str:
    play = {
        "name": f"Deploy {params.app_name} to Kubernetes",
        "hosts": "localhost",
        "connection": "local",
        "gather_facts": False,
        "vars": _k8s_vars(params),
        "tasks": _k8s_tasks(params),
    }
    return _render(f"{params.app_name} - Kubernetes", params, [[play]])


def _terraform_play(params: TemplateParams) -> dict[str, Any]:
    return {
        "name": "Provision the infrastructure",
        "hosts": "localhost",
        "connection": "local",
        "gather_facts": False,
        "vars": {"terraform_dir": "./terraform", "workspace": str(params.environment)},
        "tasks": [
            {
                "name": "Apply the Terraform configuration",
                "community.general.terraform": {
                    "project_path": "{{ terraform_dir }}",
                    "workspace": "{{ workspace }}",
                    "state": "present",
                    "force_init": True,
                },
                "register": "terraform_output",
            },
            {
                "name": "Register the provisioned hosts",
                "add_host": {
                    "name": "{{ item }}",
                    "groups": "provisioned",
                },
                "loop": "{{ terraform_output.outputs.instance_ips.value | default([]) }}",
            },
        ],
    }


def render_cloud_provisioning(params: TemplateParams) -> str:
    configure = {
        "name": "Configure the provisioned hosts",
        "hosts": "provisioned",
        "become": True,
        "tasks": [
            {"name": "Wait for SSH", "wait_for_connection": {"timeout": 300}},
            {"name": "Install base packages", **_apt(["curl", "ca-certificates"])},
        ],
    }
    return _render(
        f"{params.project_name} - cloud provisioning",
        params,
        [[_terraform_play(params), configure]],
    )


def render_hybrid(params: TemplateParams) -> str:
    """Three documents: provision, configure, deploy."""
    configure = {
        "name": "Configure cluster nodes",
        "hosts": "provisioned",
        "become": True,
        "roles": list(params.roles) or ["common", "security"],
    }
    deploy = {
        "name": f"Deploy {params.app_name} to Kubernetes",
        "hosts": "localhost",
        "connection": "local",
        "gather_facts": False,
        "vars": _k8s_vars(params),
        "tasks": _k8s_tasks(params),
    }
    return _render(
        f"{params.project_name} - hybrid pipeline",
        params,
        [[_terraform_play(params)], [configure], [deploy]],
    )


def render_serverless(params: TemplateParams) -> str:
    play = {
        "name": f"Deploy the {params.app_name} function",
        "hosts": "localhost",
        "connection": "local",
        "gather_facts": False,
        "vars": {
            "function_name": f"{params.app_name}-{params.environment}",
            "runtime": f"python{params.python_version}",
        },
        "tasks": [
            {
                "name": "Package the function",
                "community.general.archive": {
                    "path": "./src",
                    "dest": "./build/function.zip",
                    "format": "zip",
                },
            },
            {
                "name": "Deploy the Lambda function",
                "amazon.aws.lambda": {
                    "name": "{{ function_name }}",
                    "runtime": "{{ runtime }}",
                    "handler": "app.handler",
                    "role": "{{ lambda_role_arn }}",
                    "zip_file": "./build/function.zip",
                    "state": "present",
                },
            },
        ],
    }
    return _render(f"{params.app_name} - serverless", params, [[play]])
