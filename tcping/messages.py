"""Localized message catalog for tcping output.

All user-facing text lives in one table keyed by locale tag. Templates use
``str.format`` named fields. A :class:`Messages` object is handed to whoever
renders output; nothing here keeps a process-wide "current language".
"""

import logging
import os
from collections.abc import Mapping

logger = logging.getLogger(__name__)

DEFAULT_LANGUAGE = "en-US"

_EN_US = {
    # Program info
    "program_description": "TCP/HTTP Connection Test Tool",
    "copyright": "Copyright (c) 2025. All rights reserved.",
    "version_format": "{program} version {version}",
    "version_git": "Git commit: {git_hash}",
    "version_build": "Build time: {build_time}",
    # Help and usage
    "usage_description": "{program} tests TCP connectivity or HTTP/HTTPS service response to target hosts.",
    "usage_tcp": "tcping [options] <host> [port]                  # TCP mode (default port: 80)",
    "usage_http": "tcping -H [options] <URI>                       # HTTP mode",
    "options_title": "Options",
    "tcp_examples_title": "TCP Mode Examples",
    "http_examples_title": "HTTP Mode Examples",
    "opt_ipv4": "Force IPv4",
    "opt_ipv6": "Force IPv6",
    "opt_count": "Number of requests to send (default: 4, 0 = unlimited)",
    "opt_port": "Specify the port to connect to (default: 80)",
    "opt_interval": "Request interval in milliseconds (default: 1000ms)",
    "opt_timeout": "Connection timeout in milliseconds (default: 1000ms)",
    "opt_color": "Enable colored output",
    "opt_verbose": "Enable verbose mode, show more connection details",
    "opt_http": "Enable HTTP mode to test HTTP/HTTPS services",
    "opt_insecure": "Skip SSL/TLS certificate verification (HTTP mode only)",
    "opt_language": "Set language (en-US, zh-CN)",
    "opt_version": "Show version information",
    "opt_help": "Show this help information",
    "example_basic": "tcping google.com                    # Basic usage (default port 80)",
    "example_basic_port": "tcping google.com 80                 # Basic usage with port specified",
    "example_port_flag": "tcping -p 443 google.com             # Use -p flag to specify port",
    "example_ipv4": "tcping -4 -n 5 8.8.8.8 443           # IPv4, 5 requests",
    "example_color_verbose": "tcping -c -v example.com 443         # Colored output and verbose mode",
    "example_https": "tcping -H https://www.google.com     # Test HTTPS service",
    "example_http": "tcping -H http://example.com         # Test HTTP service",
    "example_http_count": "tcping -H -n 10 https://github.com   # Send 10 HTTP requests",
    "example_http_verbose": "tcping -H -v https://api.github.com  # Verbose mode, show response details",
    "example_http_insecure": "tcping -H -k https://self-signed.badssl.com  # Skip SSL certificate verification",
    # Errors
    "error_prefix": "Error: {message}",
    "error_generic": "{message}",
    "error_invalid_port": "Invalid port number format",
    "error_port_range": "Port number must be between 1 and 65535",
    "error_ipv6_decimal": "IPv6 addresses do not support decimal format",
    "error_ipv6_hex": "IPv6 addresses do not support hexadecimal format",
    "error_not_ipv4": "Address {host} is not an IPv4 address",
    "error_not_ipv6": "Address {host} is not an IPv6 address",
    "error_resolve": "Failed to resolve {host}: {cause}",
    "error_no_ip": "No IP address found for {host}",
    "error_no_ipv4": "No IPv4 address found for {host}",
    "error_no_ipv6": "No IPv6 address found for {host}",
    "error_both_families": "Cannot use both -4 and -6 flags",
    "error_negative_count": "Count cannot be negative",
    "error_negative_interval": "Interval time cannot be negative",
    "error_negative_timeout": "Timeout cannot be negative",
    "error_host_required": "Host parameter is required\n\nUsage: tcping [options] <host> [port]\nTry 'tcping -h' for more information",
    "error_uri_required": "HTTP mode requires URI parameter\n\nUsage: tcping -H [options] <URI>\nTry 'tcping -h' for more information",
    "error_invalid_uri": "Invalid URI format: {cause}",
    "error_uri_scheme": "URI must start with http:// or https://",
    "error_bad_argument": "{message}\nTry 'tcping -h' for more information",
    # Runtime messages
    "tcp_start": "TCPing to {host} ({family} - {ip}) port {port}",
    "http_start": "HTTP Ping to {uri} (User-Agent: {agent})",
    "interrupted": "\nOperation interrupted.",
    "tcp_cancelled": "\nOperation interrupted, connection attempt aborted",
    "http_cancelled": "\nOperation interrupted, HTTP request aborted",
    "connection_timeout": "Connection timeout",
    "tcp_failed": "TCP connection failed {ip}:{port}: seq={seq} error={error}",
    "tcp_success": "Response from {ip}:{port}: seq={seq} time={elapsed:.2f}ms",
    "http_build_failed": "HTTP request creation failed {uri}: seq={seq} error={error}",
    "http_request_failed": "HTTP request failed {uri}: seq={seq} error={error}",
    "http_read_failed": "HTTP response read failed {uri}: seq={seq} error={error}",
    "http_response": "HTTP {status} {uri}: seq={seq} time={elapsed:.2f}ms size={size} bytes bandwidth={bandwidth:.2f} Mbps",
    # Verbose messages
    "verbose_failure": "  Details: Connection attempt took {elapsed:.2f}ms, target {address}:{port}",
    "verbose_connection": "  Details: Local address={local}, Remote address={ip}:{port}",
    "verbose_http_details": "  Details:",
    "verbose_http_status": "    Status: {status}",
    "verbose_http_headers": "    Response Headers:",
    "insecure_warning": "  Warning: SSL/TLS certificate verification is disabled",
    # Statistics
    "tcp_stats_title": "\n\n--- TCP ping statistics ---",
    "http_stats_title": "\n\n--- HTTP ping statistics ---",
    "stats_summary": "Sent = {sent}, Received = {responded}, Lost = {lost} ({loss_rate:.1f}% loss)",
    "stats_rtt": "Round-trip times: Min = {min:.2f}ms, Max = {max:.2f}ms, Avg = {avg:.2f}ms",
    "stats_total_data": "Total data transferred: {bytes} bytes ({megabytes:.2f} MB)",
    "stats_bandwidth": "Estimated bandwidth: Min = {min:.2f} Mbps, Max = {max:.2f} Mbps, Avg = {avg:.2f} Mbps",
}

_ZH_CN = {
    "program_description": "TCP/HTTP 连接测试工具",
    "copyright": "版权所有 (c) 2025。保留所有权利。",
    "version_format": "{program} 版本 {version}",
    "version_git": "Git 提交: {git_hash}",
    "version_build": "构建时间: {build_time}",
    "usage_description": "{program} 用于测试目标主机的 TCP 连通性或 HTTP/HTTPS 服务响应。",
    "usage_tcp": "tcping [选项] <主机> [端口]                      # TCP 模式 (默认端口: 80)",
    "usage_http": "tcping -H [选项] <URI>                         # HTTP 模式",
    "options_title": "选项",
    "tcp_examples_title": "TCP 模式示例",
    "http_examples_title": "HTTP 模式示例",
    "opt_ipv4": "强制使用 IPv4",
    "opt_ipv6": "强制使用 IPv6",
    "opt_count": "发送请求次数 (默认: 4, 0 = 无限)",
    "opt_port": "指定要连接的端口 (默认: 80)",
    "opt_interval": "请求间隔（毫秒）(默认: 1000ms)",
    "opt_timeout": "连接超时（毫秒）(默认: 1000ms)",
    "opt_color": "启用彩色输出",
    "opt_verbose": "启用详细模式，显示更多连接信息",
    "opt_http": "启用 HTTP 模式，测试 HTTP/HTTPS 服务",
    "opt_insecure": "跳过 SSL/TLS 证书验证 (仅 HTTP 模式)",
    "opt_language": "设置语言 (en-US, zh-CN)",
    "opt_version": "显示版本信息",
    "opt_help": "显示帮助信息",
    "example_basic": "tcping google.com                    # 基本用法 (默认端口 80)",
    "example_basic_port": "tcping google.com 80                 # 指定端口的基本用法",
    "example_port_flag": "tcping -p 443 google.com             # 使用 -p 参数指定端口",
    "example_ipv4": "tcping -4 -n 5 8.8.8.8 443           # IPv4, 5 次请求",
    "example_color_verbose": "tcping -c -v example.com 443         # 彩色输出和详细模式",
    "example_https": "tcping -H https://www.google.com     # 测试 HTTPS 服务",
    "example_http": "tcping -H http://example.com         # 测试 HTTP 服务",
    "example_http_count": "tcping -H -n 10 https://github.com   # 发送 10 次 HTTP 请求",
    "example_http_verbose": "tcping -H -v https://api.github.com  # 详细模式，显示响应详情",
    "example_http_insecure": "tcping -H -k https://self-signed.badssl.com  # 跳过 SSL 证书验证",
    "error_prefix": "错误: {message}",
    "error_invalid_port": "端口号格式无效",
    "error_port_range": "端口号必须在 1 到 65535 之间",
    "error_ipv6_decimal": "IPv6 地址不支持十进制格式",
    "error_ipv6_hex": "IPv6 地址不支持十六进制格式",
    "error_not_ipv4": "地址 {host} 不是 IPv4 地址",
    "error_not_ipv6": "地址 {host} 不是 IPv6 地址",
    "error_resolve": "解析 {host} 失败: {cause}",
    "error_no_ip": "未找到 {host} 的 IP 地址",
    "error_no_ipv4": "未找到 {host} 的 IPv4 地址",
    "error_no_ipv6": "未找到 {host} 的 IPv6 地址",
    "error_both_families": "无法同时使用 -4 和 -6 标志",
    "error_negative_count": "请求次数不能为负值",
    "error_negative_interval": "间隔时间不能为负值",
    "error_negative_timeout": "超时时间不能为负值",
    "error_host_required": "需要提供主机参数\n\n用法: tcping [选项] <主机> [端口]\n尝试 'tcping -h' 获取更多信息",
    "error_uri_required": "HTTP模式需要提供URI参数\n\n用法: tcping -H [选项] <URI>\n尝试 'tcping -h' 获取更多信息",
    "error_invalid_uri": "无效的URI格式: {cause}",
    "error_uri_scheme": "URI必须以http://或https://开头",
    "error_bad_argument": "{message}\n尝试 'tcping -h' 获取更多信息",
    "tcp_start": "正在对 {host} ({family} - {ip}) 端口 {port} 执行 TCP Ping",
    "http_start": "正在对 {uri} 执行 HTTP Ping (User-Agent: {agent})",
    "interrupted": "\n操作被中断。",
    "tcp_cancelled": "\n操作被中断, 连接尝试已中止",
    "http_cancelled": "\n操作被中断, HTTP请求已中止",
    "connection_timeout": "连接超时",
    "tcp_failed": "TCP连接失败 {ip}:{port}: seq={seq} 错误={error}",
    "tcp_success": "从 {ip}:{port} 收到响应: seq={seq} time={elapsed:.2f}ms",
    "http_build_failed": "HTTP请求创建失败 {uri}: seq={seq} 错误={error}",
    "http_request_failed": "HTTP请求失败 {uri}: seq={seq} 错误={error}",
    "http_read_failed": "HTTP响应读取失败 {uri}: seq={seq} 错误={error}",
    "verbose_failure": "  详细信息: 连接尝试耗时 {elapsed:.2f}ms, 目标 {address}:{port}",
    "verbose_connection": "  详细信息: 本地地址={local}, 远程地址={ip}:{port}",
    "verbose_http_details": "  详细信息:",
    "verbose_http_status": "    状态: {status}",
    "verbose_http_headers": "    响应头:",
    "insecure_warning": "  警告: SSL/TLS证书验证已禁用",
    "tcp_stats_title": "\n\n--- 目标主机 TCP ping 统计 ---",
    "http_stats_title": "\n\n--- HTTP ping 统计 ---",
    "stats_summary": "已发送 = {sent}, 已接收 = {responded}, 丢失 = {lost} ({loss_rate:.1f}% 丢失)",
    "stats_rtt": "往返时间(RTT): 最小 = {min:.2f}ms, 最大 = {max:.2f}ms, 平均 = {avg:.2f}ms",
    "stats_total_data": "总传输数据: {bytes} bytes ({megabytes:.2f} MB)",
    "stats_bandwidth": "估算带宽: 最小 = {min:.2f} Mbps, 最大 = {max:.2f} Mbps, 平均 = {avg:.2f} Mbps",
}

CATALOG: dict[str, dict[str, str]] = {
    "en-US": _EN_US,
    "zh-CN": _ZH_CN,
}

# Accepted spellings, after lower-casing and "_" -> "-"
_ALIASES = {
    "en": "en-US",
    "en-us": "en-US",
    "zh": "zh-CN",
    "zh-cn": "zh-CN",
    "zh-hans": "zh-CN",
    "zh-sg": "zh-CN",
}

_LOCALE_ENV_VARS = ("LC_ALL", "LC_MESSAGES", "LANG")


def normalize_language(code: str | None) -> str:
    """Map a locale code such as ``zh_CN.UTF-8`` to a catalog tag.

    Unknown or empty codes fall back to :data:`DEFAULT_LANGUAGE`.

    Examples:
        >>> normalize_language("zh_CN.UTF-8")
        'zh-CN'
        >>> normalize_language("fr-FR")
        'en-US'
    """
    if not code:
        return DEFAULT_LANGUAGE

    code = code.strip().lower().replace("_", "-")
    # Drop encoding and modifier: "en-us.utf-8@euro" -> "en-us"
    for sep in (".", "@"):
        if sep in code:
            code = code.split(sep, 1)[0]

    if code in _ALIASES:
        return _ALIASES[code]

    primary = code.split("-", 1)[0]
    return _ALIASES.get(primary, DEFAULT_LANGUAGE)


def detect_language(environ: Mapping[str, str] | None = None) -> str:
    """Detect the operator's language from the standard locale variables.

    Checks LC_ALL, LC_MESSAGES and LANG in that order; the first non-empty
    value wins. ``C`` and ``POSIX`` locales map to the default language.
    """
    if environ is None:
        environ = os.environ

    for name in _LOCALE_ENV_VARS:
        value = environ.get(name, "")
        if value:
            if value.upper() in ("C", "POSIX") or value.upper().startswith("C."):
                return DEFAULT_LANGUAGE
            language = normalize_language(value)
            logger.debug("Language detected from %s=%s: %s", name, value, language)
            return language

    return DEFAULT_LANGUAGE


class Messages:
    """Message templates for one language, with English fallback per key."""

    def __init__(self, language: str = DEFAULT_LANGUAGE):
        self.language = normalize_language(language)
        self._templates = CATALOG[self.language]

    def template(self, key: str) -> str:
        if key in self._templates:
            return self._templates[key]
        return _EN_US[key]

    def format(self, key: str, **params) -> str:
        """Render message ``key`` with ``params``."""
        return self.template(key).format(**params)

    def __repr__(self) -> str:
        return f"Messages({self.language!r})"


def get_messages(language: str | None = None) -> Messages:
    """Return the catalog for ``language``, detecting it when not given."""
    if language:
        return Messages(language)
    return Messages(detect_language())
